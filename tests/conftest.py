import os
from pathlib import Path

import pytest

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture(scope="session", autouse=True)
def disable_wait_env():
    """Ensure retry loops are disabled during test runs.

    Sets DISABLE_WAIT=true for the entire pytest session so any @wait-decorated
    functions run once and return immediately, preventing slow/hanging tests.
    """
    os.environ["DISABLE_WAIT"] = "true"


@pytest.fixture(scope="session", autouse=True)
def baseline_settings_env():
    """Provide baseline env vars so tests are not affected by local .env.

    Pydantic-settings precedence: init args > env vars > .env > defaults.
    Setting these ensures stable defaults regardless of any .env present.
    """
    os.environ.update({
        # App
        "APP_NAME": "s3clf API",
        "APP_VERSION": "0.1.0",
        "APP_DEBUG": "false",
        "APP_ENVIRONMENT": "development",
        # API
        "API_HOST": "0.0.0.0",
        "API_PORT": "8000",
        "API_WORKERS": "1",
        "API_RELOAD": "false",
        "API_LOG_LEVEL": "INFO",
        # Filter
        "FILTER_SOURCE": "message",
        "FILTER_TARGET": "message",
        "FILTER_COPY_OPERATION": "convert",
        "FILTER_RECALCULATE_PARTIAL_CONTENT": "false",
        "FILTER_MAX_KBITRATE": "24000",
        # Conversion
        "CONVERSION_ENABLED": "false",
    })


@pytest.fixture(autouse=True)
def refresh_settings_cache():
    """Clear settings cache so env changes take effect per test.

    Ensures tests using monkeypatch.setenv() get a fresh Settings instance.
    """
    from s3clf.config.settings import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def load_valid_s3_log() -> list[str]:
    """Load the contents of the valid S3 access log file."""
    with open(DATA_DIR / "valid_s3_log.txt", "r", encoding="utf-8") as f:
        return f.readlines()


@pytest.fixture
def load_invalid_s3_log() -> list[str]:
    """Load the contents of the invalid log file."""
    with open(DATA_DIR / "invalid_s3_log.txt", "r", encoding="utf-8") as f:
        return f.readlines()


@pytest.fixture
def plain_line() -> str:
    """A GET whose Bytes Sent is '-' and Object Size is set."""
    return (
        '79a5 mybucket [06/Feb/2019:00:00:38 +0000] 192.0.2.3 79a5 3E57 REST.GET.OBJECT key.txt '
        '"GET /key.txt HTTP/1.1" 200 - - 2662992 3100 70 - "S3Console/0.4" -'
    )


@pytest.fixture
def copy_line() -> str:
    """A REST.COPY.OBJECT_GET line without request line."""
    return (
        '79a5 mybucket [06/Feb/2019:00:00:38 +0000] 192.0.2.3 79a5 3E58 REST.COPY.OBJECT_GET '
        'source/key.txt - 200 - 2662992 2662992 48 - - - -'
    )


@pytest.fixture
def partial_content_line() -> str:
    """A 206 mp3 request logged at 40 Mbit/s."""
    return (
        '79a5 mybucket [06/Feb/2019:00:00:38 +0000] 198.51.100.7 Anonymous 3E59 REST.GET.OBJECT '
        'audio/track.mp3 "GET /audio/track.mp3 HTTP/1.1" 206 - 5000000 9000000 1000 12 '
        '"-" "AppleCoreMedia/1.0.0.16G102" -'
    )
