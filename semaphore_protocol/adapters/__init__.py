"""Storage and proof system backends."""
