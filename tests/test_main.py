import pytest

from main import build_parser


def test_backfill_defaults():
    args = build_parser().parse_args(["backfill"])
    assert args.command == "backfill"
    assert args.limit == 1000


def test_serve_options():
    args = build_parser().parse_args(["serve", "--port", "8080", "--debug"])
    assert (args.host, args.port, args.debug) == ("127.0.0.1", 8080, True)


def test_command_is_required():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])
