"""Test package for the BizChat front-end.

Structure:
    - unit/: Individual function and class tests
    - integration/: Store and routes against in-process fake services
    - mocks/: Fake chat backend

No network access. External services are replaced by in-process fakes.
Leverages pytest with pytest-check for soft assertions.
"""
