"""
product_cache.py - Cache a slow product lookup in process.

Demonstrates a bounded LRU namespace, a cache hit, and eviction once the
namespace is full.

Usage:
    python examples/product_cache.py
"""

import logging
import time

from callcache import CacheEngine, CacheSpec, cached

engine = CacheEngine()

PRODUCTS = CacheSpec(
    key="ProductCache",
    parameter_mappings=[{"parameterName": "product_id"}],
    ttl=600,
    capacity=2,
)


@cached(engine, PRODUCTS)
def load_product(product_id: str) -> dict:
    time.sleep(0.2)
    return {"id": product_id, "name": f"Product {product_id}"}


def main() -> None:
    logging.basicConfig(level=logging.DEBUG)
    for product_id in ("42", "42", "7", "9"):
        started = time.perf_counter()
        product = load_product(product_id)
        elapsed_ms = (time.perf_counter() - started) * 1000
        print(f"{product['id']}: {elapsed_ms:.1f} ms")

    print("cached keys:", engine.namespace("ProductCache").keys())


if __name__ == "__main__":
    main()
