"""Merchant admin journey: set up bundles and bins, then pull pick lists."""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import bin_location, bundle_data, shop_domain, variant_id, variety_pack_data
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import ShopState


class BundleSetupJourney(SequentialTaskSet):
    """Define pack sizes -> Define variety pack -> Assign bins -> Pick list -> CSV export."""

    def on_start(self):
        self.state = ShopState(shop_id=shop_domain())
        self.state.variant_ids = [variant_id() for _ in range(3)]

    @task
    def define_pack_sizes(self):
        for _ in range(2):
            with self.client.post(
                "/bundles",
                json=bundle_data(self.state.shop_id, self.state.variant_ids[0]),
                catch_response=True,
                name="POST /bundles",
            ) as resp:
                if resp.status_code == 201:
                    self.state.bundle_ids.append(resp.json()["bundle_id"])
                else:
                    resp.failure(f"Define bundle failed: {resp.status_code} — {extract_error_detail(resp)}")
                    self.interrupt()

    @task
    def define_variety_pack(self):
        with self.client.post(
            "/bundles",
            json=variety_pack_data(self.state.shop_id, self.state.variant_ids),
            catch_response=True,
            name="POST /bundles [variety]",
        ) as resp:
            if resp.status_code == 201:
                self.state.bundle_ids.append(resp.json()["bundle_id"])
            else:
                resp.failure(f"Define variety pack failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def assign_bins(self):
        for vid in self.state.variant_ids:
            self.client.put(
                "/bin-locations",
                json={"shop_id": self.state.shop_id, "variant_id": vid, "location": bin_location()},
                name="PUT /bin-locations",
            )

    @task
    def generate_pick_list(self):
        self.client.post(
            "/picklists",
            json={"shop_id": self.state.shop_id, "sort_by": random.choice(["bin_location", "product", "quantity"])},
            name="POST /picklists",
        )

    @task
    def export_pick_list(self):
        self.client.post("/picklists/export", json={"shop_id": self.state.shop_id}, name="POST /picklists/export")
        self.interrupt()


class BundleAdminUser(HttpUser):
    tasks = [BundleSetupJourney]
    wait_time = between(1, 3)
