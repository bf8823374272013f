"""Pytest configuration and shared fixtures."""

import logfire


# Spans are recorded locally only; nothing leaves the test process
logfire.configure(send_to_logfire=False, console=False)
