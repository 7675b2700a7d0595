"""Normalization primitives: SKU filters, unit mapping, tier expansion, regions."""
