import logging

import pytest

from s3_signer.config import StoreConfig
from s3_signer.logging_config import TRACE, configure_logging, level_for_verbosity
from s3_signer.main import parse_args, store_config_from_args

ENV = {"AWS_ACCESS_KEY_ID": "AKIDEXAMPLE", "AWS_SECRET_ACCESS_KEY": "secret"}


def test_defaults_from_environment() -> None:
    args = parse_args([], ENV)
    assert args.port == 8000
    assert args.verbose == 0
    assert store_config_from_args(args) == StoreConfig(
        access_key_id="AKIDEXAMPLE",
        secret_access_key="secret",
        region="us-east-1",
        endpoint=None,
        expires_in=3600,
    )


def test_flags_override_environment() -> None:
    args = parse_args(
        ["--aws-region", "eu-west-3", "-H", "minio.local:9000", "-p", "9001", "-vvv"],
        {**ENV, "AWS_REGION": "us-west-2", "PORT": "7000"},
    )
    config = store_config_from_args(args)
    assert config.region == "eu-west-3"
    assert config.endpoint_url == "https://minio.local:9000"
    assert args.port == 9001
    assert args.verbose == 3


def test_environment_fallbacks() -> None:
    args = parse_args([], {**ENV, "AWS_HOSTNAME": "http://minio:9000", "PORT": "7000", "PRESIGN_EXPIRES_IN": "60"})
    config = store_config_from_args(args)
    assert config.endpoint_url == "http://minio:9000"
    assert config.expires_in == 60
    assert args.port == 7000


def test_credentials_are_required() -> None:
    with pytest.raises(SystemExit):
        parse_args([], {"AWS_ACCESS_KEY_ID": "AKIDEXAMPLE"})


@pytest.mark.parametrize("expires_in", ["0", "604801", "99999999"])
def test_expiry_must_be_signable(expires_in: str) -> None:
    with pytest.raises(SystemExit):
        parse_args(["--expires-in", expires_in], ENV)


def test_longest_expiry_is_accepted() -> None:
    assert parse_args([], {**ENV, "PRESIGN_EXPIRES_IN": "604800"}).expires_in == 604800


def test_memory_store_needs_no_credentials() -> None:
    args = parse_args(["--memory"], {})
    assert args.memory


def test_secret_is_not_in_repr() -> None:
    assert "secret" not in repr(StoreConfig(access_key_id="AKIDEXAMPLE", secret_access_key="secret"))


@pytest.mark.parametrize(
    "verbosity, level",
    [(0, logging.ERROR), (1, logging.WARNING), (2, logging.INFO), (3, logging.DEBUG), (4, TRACE), (9, TRACE)],
)
def test_verbosity_levels(verbosity: int, level: int) -> None:
    assert level_for_verbosity(verbosity) == level


def test_configure_logging() -> None:
    root = logging.getLogger()
    handlers, previous = root.handlers[:], root.level
    try:
        assert configure_logging(2) == logging.INFO
        assert root.level == logging.INFO
        assert len(root.handlers) == 1
    finally:
        root.handlers[:] = handlers
        root.setLevel(previous)
