"""
Import guard: key modules must import without ImportError.

Fast, simple test to catch regressions in import cycles.
"""


def test_import_main():
    import app.main  # noqa: F401

    assert app.main.app is not None


def test_import_webhooks():
    import app.api.webhooks  # noqa: F401


def test_import_pipeline():
    import app.services.pipeline  # noqa: F401


def test_import_leads():
    import app.services.leads  # noqa: F401


def test_import_messaging():
    import app.services.messaging  # noqa: F401


def test_import_sheets():
    import app.services.integrations.sheets  # noqa: F401
