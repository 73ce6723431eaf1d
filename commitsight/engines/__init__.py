"""Analysis engines — commit collection, statistics, insight synthesis."""
