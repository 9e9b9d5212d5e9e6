"""
Benchmark suite for jtree parsing and printing performance.

Compares jtree against the usual JSON libraries:
- Python standard library json
- orjson (C-optimized)
- ujson (ultra-fast JSON)

Measures parse and print speed, memory usage and allocator traffic across
different document shapes.
"""
