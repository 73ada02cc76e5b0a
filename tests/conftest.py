def pytest_configure(config):
    config.addinivalue_line("markers", "slow: long-running Monte Carlo checks (deselect with '-m \"not slow\"')")
