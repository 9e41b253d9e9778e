import json
from pathlib import Path

from hemkop_cart.browser import RecipeDocument
from hemkop_cart.config import Config
from hemkop_cart.models import CandidateProduct, ShoppingItem
from hemkop_cart.normalize import IngredientNormalizer
from hemkop_cart.pipeline import build_shopping_list, recipe_ingredients, resolve_item, run
from hemkop_cart.report import build_report


class EchoLlm:
    """Normalizes by dropping the leading quantity and answers product 1."""

    def generate(self, prompt, *, temperature, system=None):
        if prompt.startswith("Convert"):
            line = next(ln for ln in prompt.splitlines() if ln.startswith("Ingredient:"))
            words = line.split(":", 1)[1].split()
            return " ".join(w for w in words if not any(ch.isdigit() for ch in w) and w not in ("kg", "g"))
        return "1"


class FakeStore:
    def __init__(self, results=None, fail_search=False, buy_ok=True):
        self.results = results or {}
        self.fail_search = fail_search
        self.buy_ok = buy_ok
        self.searches = []
        self.bought = []
        self.increases = 0

    def search(self, term):
        self.searches.append(term)
        if self.fail_search:
            raise RuntimeError("search bar not found")
        return [CandidateProduct(**c) for c in self.results.get(term, [])]

    def buy(self, product):
        self.bought.append(product.title)
        return self.buy_ok

    def increase_quantity(self, product):
        self.increases += 1
        return True


def _doc(html):
    def fetch(url, *, timeout_ms):
        return RecipeDocument.from_html(url, html)
    return fetch


def _recipe_html(ingredients):
    block = json.dumps({"@type": "Recipe", "recipeIngredient": ingredients})
    return f'<html><script type="application/ld+json">{block}</script></html>'


BANANAS = {
    "bananer": [
        {"title": "Bananer 150g", "display_volume": "150g"},
        {"title": "Bananer 300g", "display_volume": "300g"},
        {"title": "Bananer klase", "display_volume": "ca: 500g", "price": "19,90 kr"},
    ]
}


def test_scenario_a_end_to_end():
    cfg = Config()
    store = FakeStore(BANANAS)
    item = ShoppingItem(raw="2.5 kg bananer", search_term="bananer")

    report = resolve_item(item, store, EchoLlm(), cfg)

    assert store.bought == ["Bananer klase"]
    assert store.increases == 4
    assert report.status == "ADDED"
    assert report.quantity == 5
    assert report.method == "deterministic_weight"
    assert report.total_grams == 2500.0


def test_dry_run_never_buys():
    store = FakeStore(BANANAS)
    item = ShoppingItem(raw="2.5 kg bananer", search_term="bananer")
    report = resolve_item(item, store, EchoLlm(), Config(), dry_run=True)
    assert store.bought == []
    assert report.status == "DRY_RUN"
    assert report.quantity == 5


def test_no_results_retries_raw_then_skips():
    store = FakeStore()
    item = ShoppingItem(raw="1 burk tahini", search_term="tahini")
    report = resolve_item(item, store, EchoLlm(), Config())
    assert store.searches == ["tahini", "1 burk tahini"]
    assert report.status == "SKIPPED_NO_MATCH"


def test_search_error_marks_item_failed_and_run_continues():
    store = FakeStore(fail_search=True)
    items = [ShoppingItem("a", "a"), ShoppingItem("b", "b")]
    reports = run(items, store, EchoLlm(), Config())
    assert [r.status for r in reports] == ["FAILED", "FAILED"]


def test_buy_failure_is_reported():
    store = FakeStore({"mjölk": [{"title": "Mellanmjölk"}]}, buy_ok=False)
    report = resolve_item(ShoppingItem("mjölk", "mjölk"), store, EchoLlm(), Config())
    assert report.status == "FAILED"
    assert report.chosen_title == "Mellanmjölk"


def test_llm_selection_buys_single_unit():
    store = FakeStore({"jordnötssmör": [{"title": "Jordnötssmör 350g", "display_volume": "350g"}]})
    item = ShoppingItem("en burk jordnötssmör", "jordnötssmör")
    report = resolve_item(item, store, EchoLlm(), Config())
    assert report.method == "llm_arbitration"
    assert report.quantity == 1
    assert store.increases == 0


def test_recipe_ingredients_json_ld_then_fallback():
    cfg = Config(excluded_ingredients=("salt",))
    html = _recipe_html(["500g vetemjöl", "1 tsk salt"])
    assert recipe_ingredients("https://x", cfg, fetch=_doc(html)) == ["500g vetemjöl"]

    fallback = "<h3>Ingredienser</h3><ul><li>2 ägg</li></ul>"
    assert recipe_ingredients("https://x", cfg, fetch=_doc(fallback)) == ["2 ägg"]


def test_recipe_fetch_error_is_empty():
    def broken(url, *, timeout_ms):
        raise RuntimeError("net::ERR_NAME_NOT_RESOLVED")

    assert recipe_ingredients("https://x", Config(), fetch=broken) == []


def test_shopping_list_from_recipe_is_normalized():
    cfg = Config()
    normalizer = IngredientNormalizer(EchoLlm())
    items = build_shopping_list(
        cfg, normalizer, recipe_url="https://x", fetch=_doc(_recipe_html(["2.5 kg bananer"])),
    )
    assert items == [ShoppingItem(raw="2.5 kg bananer", search_term="bananer")]


def test_shopping_list_falls_back_to_default():
    cfg = Config(shopping_list=("en burk jordnötssmör",))
    normalizer = IngredientNormalizer(EchoLlm())
    items = build_shopping_list(cfg, normalizer, recipe_url="https://x", fetch=_doc("<html></html>"))
    assert [i.raw for i in items] == ["en burk jordnötssmör"]

    assert [i.raw for i in build_shopping_list(cfg, normalizer)] == ["en burk jordnötssmör"]


def test_report_counts(tmp_path):
    store = FakeStore(BANANAS)
    items = [ShoppingItem("2.5 kg bananer", "bananer"), ShoppingItem("tahini", "tahini")]
    reports = run(items, store, EchoLlm(), Config())
    report = build_report(reports, dry_run=False)
    assert (report.total, report.added, report.skipped, report.failed) == (2, 1, 1, 0)
    assert "5 x Bananer klase" in report.summary_text()

    path = report.write_json(str(tmp_path / "run.json"))
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    assert data["items"][0]["status"] == "ADDED"
