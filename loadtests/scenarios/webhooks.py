"""Inventory webhook load scenarios.

WebhookBurstUser models a bulk stock import: hundreds of distinct
inventory_levels/update deliveries arriving at once. RedeliveryStormUser
replays a small pool of message ids the way an at-least-once queue does
under backpressure; all but the first delivery of each id must be
acknowledged as duplicates.
"""

import random

from locust import HttpUser, constant_pacing, task

from loadtests.data_generators import inventory_payload, push_envelope, shop_domain
from loadtests.helpers.response import extract_error_detail


class WebhookBurstUser(HttpUser):
    wait_time = constant_pacing(0.05)

    def on_start(self):
        self.shop_id = shop_domain()

    @task(4)
    def queued_push(self):
        with self.client.post(
            "/webhooks/inventory/pubsub",
            json=push_envelope(self.shop_id),
            catch_response=True,
            name="[BURST] POST /webhooks/inventory/pubsub",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Push not acknowledged: {resp.status_code} — {extract_error_detail(resp)}")

    @task(1)
    def direct_webhook(self):
        with self.client.post(
            "/webhooks/inventory",
            json=inventory_payload(),
            headers={"X-Shopify-Shop-Domain": self.shop_id},
            catch_response=True,
            name="[BURST] POST /webhooks/inventory",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Webhook not acknowledged: {resp.status_code} — {extract_error_detail(resp)}")


class RedeliveryStormUser(HttpUser):
    wait_time = constant_pacing(0.1)

    def on_start(self):
        self.shop_id = shop_domain()
        self.pool = [push_envelope(self.shop_id) for _ in range(10)]

    @task
    def redeliver(self):
        envelope = random.choice(self.pool)
        with self.client.post(
            "/webhooks/inventory/pubsub",
            json=envelope,
            catch_response=True,
            name="[REDELIVERY] POST /webhooks/inventory/pubsub",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Redelivery not acknowledged: {resp.status_code} — {extract_error_detail(resp)}")
