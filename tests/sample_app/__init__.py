"""A small shop application used as component libraries by the tests."""
