"""Mixed storefront workload scenario.

Combines the vendor and customer journeys with weights that model a
storefront where most traffic is shopping.
"""

from locust import HttpUser, between

from loadtests.scenarios.catalogue import CatalogueJourney
from loadtests.scenarios.shopping import CancellationJourney, CheckoutJourney, ReturnJourney


class MixedWorkloadUser(HttpUser):
    """Weights: checkout 55%, catalogue 20%, cancellation 15%, returns 10%."""

    wait_time = between(0.5, 2)
    tasks = {
        CheckoutJourney: 55,
        CatalogueJourney: 20,
        CancellationJourney: 15,
        ReturnJourney: 10,
    }
