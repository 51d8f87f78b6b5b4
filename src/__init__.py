"""
BLS Labor Statistics Tutorial

Modules:
- chapter0: Observation records and contracts
- chapter1: Fetching from the BLS API (year windows, client, validation)
- chapter2: Tidy, smooth, visualize
- chapter3: Decomposition, forecasting and automation (Typer CLI)
"""
