from __future__ import annotations

import argparse
import dataclasses
import logging

from .config import ENV_KEYS, Config
from .hemkop import HemkopSession
from .llm import OllamaClient
from .normalize import IngredientNormalizer
from .pipeline import build_shopping_list, recipe_ingredients, run
from .report import build_report

__version__ = "0.1.0"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="hemkop-cart")
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    p.add_argument("--model", default=None, help="Ollama model (overrides OLLAMA_MODEL)")
    p.add_argument("--ollama-url", default=None, help="Ollama URL (overrides OLLAMA_URL)")
    p.add_argument("--headless", action="store_true", help="Run the store browser headless")

    sub = p.add_subparsers(dest="cmd", required=False)

    p_config = sub.add_parser("config", help="Config commands")
    sub_config = p_config.add_subparsers(dest="config_cmd", required=True)
    sub_config.add_parser("keys", help="List recognized environment variables")
    sub_config.add_parser("show", help="Print the effective configuration")

    p_recipe = sub.add_parser("recipe", help="Print the ingredients extracted from a recipe URL")
    p_recipe.add_argument("url")

    p_norm = sub.add_parser("normalize", help="Turn ingredient lines into store search terms")
    p_norm.add_argument("ingredients", nargs="+")

    p_search = sub.add_parser("search", help="Search hemkop.se for a product")
    p_search.add_argument("term", help="Search term (e.g. 'bananer')")
    p_search.add_argument("--limit", type=int, default=10, help="Max results")

    p_shop = sub.add_parser("shop", help="Recipe or default list -> Hemköp cart")
    p_shop.add_argument("url", nargs="?", default=None, help="Recipe URL (same as --recipe)")
    p_shop.add_argument("--recipe", "-r", default=None, help="Recipe URL")
    p_shop.add_argument("--dry-run", action="store_true", help="Match only, do not add to cart")
    p_shop.add_argument("--limit", type=int, default=0, help="Max items (0=all)")
    p_shop.add_argument("--delay", type=float, default=2, help="Seconds between items")
    p_shop.add_argument("--report", default="artifacts/run_report.json", help="JSON report path")
    p_shop.add_argument("--screenshots", default=None, help="Directory for search result screenshots")

    return p


def _load_config(args) -> Config:
    cfg = Config.load_from_env()
    overrides = {}
    if args.model:
        overrides["ollama_model"] = args.model
    if args.ollama_url:
        overrides["ollama_url"] = args.ollama_url.rstrip("/")
    if args.headless:
        overrides["headless"] = True
    return dataclasses.replace(cfg, **overrides) if overrides else cfg


def recipe_url_from_args(args) -> str | None:
    """``--recipe`` wins; otherwise a positional argument that looks like a URL."""
    if args.recipe:
        return args.recipe
    if args.url and args.url.startswith(("http://", "https://")):
        return args.url
    return None


def _llm(cfg: Config) -> OllamaClient:
    return OllamaClient(url=cfg.ollama_url, model=cfg.ollama_model, timeout_s=cfg.llm_timeout_s)


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.version:
        print(__version__)
        return 0

    if args.cmd is None:
        p.print_help()
        return 0

    cfg = _load_config(args)

    if args.cmd == "config":
        if args.config_cmd == "keys":
            for k in ENV_KEYS:
                print(k)
            return 0

        if args.config_cmd == "show":
            for f in dataclasses.fields(cfg):
                print(f"{f.name}: {getattr(cfg, f.name)}")
            return 0

    if args.cmd == "recipe":
        ingredients = recipe_ingredients(args.url, cfg)
        if not ingredients:
            print("No ingredients found.")
            return 1
        for ing in ingredients:
            print(ing)
        return 0

    if args.cmd == "normalize":
        normalizer = IngredientNormalizer(_llm(cfg), temperature=cfg.temperature)
        for raw in args.ingredients:
            print(f"{raw} -> {normalizer.normalize(raw)}")
        return 0

    if args.cmd == "search":
        with HemkopSession(cfg.base_url, headless=cfg.headless, slow_mo_ms=cfg.slow_mo_ms) as store:
            candidates = store.search(args.term, limit=args.limit)
        if not candidates:
            print("No results found.")
            return 1
        for i, c in enumerate(candidates, 1):
            print(f"{i}. {c.title}")
            print(f"   Price: {c.price or 'N/A'}  Compare: {c.compare_price or 'N/A'}  Size: {c.display_volume or 'N/A'}")
        return 0

    if args.cmd == "shop":
        return _run_shop(args, cfg)

    raise RuntimeError("unreachable")


def _run_shop(args, cfg: Config) -> int:
    llm = _llm(cfg)
    normalizer = IngredientNormalizer(llm, temperature=cfg.temperature)

    recipe_url = recipe_url_from_args(args)
    if args.url and recipe_url is None:
        print(f"WARN: ignoring {args.url!r}, not a http(s) URL")
    items = build_shopping_list(cfg, normalizer, recipe_url=recipe_url)
    if args.limit > 0:
        items = items[: args.limit]
    print(f"Shopping list contains {len(items)} items.")

    def _progress(idx, item, report):
        print(f"\n-> [{idx + 1}/{len(items)}] {item.raw}")
        print(f"  search: {item.search_term}")
        if report.chosen_title:
            print(f"  MATCH ({report.method}): {report.chosen_title}  {report.chosen_price or ''}")
        print(f"  -> {report.status}")

    with HemkopSession(
        cfg.base_url,
        headless=cfg.headless,
        slow_mo_ms=cfg.slow_mo_ms,
        screenshot_dir=args.screenshots,
    ) as store:
        reports = run(
            items, store, llm, cfg,
            dry_run=args.dry_run, delay_s=args.delay, on_item=_progress,
        )

    report = build_report(reports, dry_run=args.dry_run)
    print("\n" + report.summary_text())
    path = report.write_json(args.report)
    print(f"\nReport written to {path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
