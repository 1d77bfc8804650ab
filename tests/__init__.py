"""
ISS Tracker Test Suite

Structure:
- unit/: Unit tests for individual components (fetcher, display, map view, loop, scheduler, config)
- integration/: Web service and end-to-end update scenarios
"""
