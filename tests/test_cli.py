import io

import pytest

from arqsim.cli import build_parser, main

DELIVERED = "number of messages delivered to application:  {} "


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.protocol == "sr"
    assert args.seed == 9999
    assert args.messages is None


def test_parser_rejects_unknown_protocol():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--protocol", "abp"])


@pytest.mark.parametrize("protocol", ["gbn", "sr"])
def test_main_with_all_options(protocol, capsys):
    code = main(
        [
            "--protocol", protocol,
            "--messages", "5",
            "--loss", "0",
            "--corrupt", "0",
            "--interval", "1000",
            "--trace", "0",
        ]
    )
    out = capsys.readouterr().out
    assert code == 0
    assert DELIVERED.format(5) in out
    assert "Simulator terminated at time" in out
    assert "after attempting to send 5 msgs from layer5" in out


def test_main_prompts_for_missing_values(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("3\n0.0\n0.0\n1000\n0\n"))
    code = main(["--protocol", "gbn"])
    out = capsys.readouterr().out
    assert code == 0
    assert "Enter the number of messages to simulate: " in out
    assert "Enter TRACE:" in out
    assert "choose the direction" not in out
    assert DELIVERED.format(3) in out


def test_main_asks_direction_when_lossy(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("3\n0.1\n0\n2\n1000\n0\n"))
    code = main([])
    out = capsys.readouterr().out
    assert code == 0
    assert "choose the direction: 0 A->B, 1 A<-B, 2 A<->B" in out


def test_main_rejects_bad_prompt_answer(monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO("many\n"))
    with pytest.raises(SystemExit) as info:
        main([])
    assert info.value.code == 2


def test_main_rejects_missing_answer(monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO(""))
    with pytest.raises(SystemExit) as info:
        main([])
    assert info.value.code == 2


@pytest.mark.parametrize(
    "extra",
    [
        ["--messages", "-1", "--loss", "0"],
        ["--messages", "2", "--loss", "1.5"],
        ["--messages", "2", "--loss", "0", "--interval", "0"],
    ],
)
def test_main_rejects_invalid_settings(extra):
    base = ["--corrupt", "0", "--trace", "0", "--direction", "2"]
    if "--interval" not in extra:
        base += ["--interval", "10"]
    with pytest.raises(SystemExit) as info:
        main(base + extra)
    assert info.value.code == 2