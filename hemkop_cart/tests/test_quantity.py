import pytest

from hemkop_cart.measure import parse_weight
from hemkop_cart.models import CandidateProduct
from hemkop_cart.quantity import apply_plan, plan_quantity


class FakeStore:
    def __init__(self, confirm=True):
        self.confirm = confirm
        self.increases = 0

    def increase_quantity(self, product):
        self.increases += 1
        return self.confirm


def test_scenario_a_plan():
    plan = plan_quantity(500, 2500)
    assert plan.optimal_count == 5
    assert plan.additional_count == 4


@pytest.mark.parametrize("unit,required", [(0, 2500), (500, 0), (None, 300), (300, None), (None, None)])
def test_unknown_weight_means_one_unit(unit, required):
    plan = plan_quantity(unit, required)
    assert plan.optimal_count == 1
    assert plan.additional_count == 0


@pytest.mark.parametrize(
    "unit,required",
    [(500, 2500), (170, 1000), (1000, 500), (333, 1000), (250, 250), (7, 1)],
)
def test_plan_is_minimal_sufficient(unit, required):
    n = plan_quantity(unit, required).optimal_count
    assert (n - 1) * unit < required <= n * unit


def test_apply_plan_requests_each_increase():
    product = CandidateProduct(title="Bananer", display_volume="500g", quantity=1)
    store = FakeStore()
    clicks = apply_plan(store, product, plan_quantity(500, 2500))
    assert clicks == 4
    assert store.increases == 4
    assert product.quantity == 5


def test_apply_plan_counts_unconfirmed_increases():
    product = CandidateProduct(title="Bananer", quantity=1)
    store = FakeStore(confirm=False)
    apply_plan(store, product, plan_quantity(100, 250))
    assert store.increases == 2
    assert product.quantity == 3


def test_apply_plan_without_weights_does_nothing():
    product = CandidateProduct(title="Jordnötssmör", quantity=1)
    store = FakeStore()
    assert apply_plan(store, product, plan_quantity(0, 0)) == 0
    assert product.quantity == 1


def test_plan_from_parsed_decimal_kilos_is_exact():
    assert plan_quantity(50, parse_weight("8.05 kg")).optimal_count == 161
