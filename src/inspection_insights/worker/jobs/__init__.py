"""Job entrypoints runnable as console scripts."""
