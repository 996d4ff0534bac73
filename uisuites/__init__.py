"""
UI test suites package.

Kept importable so that fixtures, page objects and unit tests can share
``uisuites.framework`` and ``uisuites.pages``, and so ``run_tests.py``
can drive it programmatically.

All defaults target the public demo site the-internet.herokuapp.com.
"""
