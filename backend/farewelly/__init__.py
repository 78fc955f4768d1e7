"""Farewelly marketplace backend."""
