"""
BLS Labor Statistics Test Suite

Tests organized by chapter:
- test_ch0_objects.py - Observation records, period ordering, merge
- test_ch1_ranges.py - Year range splitting
- test_ch1_fetch.py - Window-by-window fetch, dedupe, fail-fast
- test_ch1_client.py - BLS client (mocked HTTP) and settings
- test_ch1_validate.py - Table integrity gate
- test_ch2_prepare.py - Tidy/wide frames, moving average, plots
- test_ch3_services.py - Decomposition and forecasting services
- test_ch3_pipeline.py - End-to-end pipeline (fake client)
- test_ch3_cli.py - Typer CLI
"""
