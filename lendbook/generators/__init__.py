"""Sample data generators."""

from lendbook.generators.lending import AccountGenerator, LendingGenerator

__all__ = ["AccountGenerator", "LendingGenerator"]
