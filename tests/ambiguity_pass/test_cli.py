import io
import json

import pytest

from ambiguity_pass.cli import build_parser, main
from ambiguity_pass.errors import InputError
from ambiguity_pass.io_utils import read_representation, write_output
from ambiguity_pass.llm_client import FakeLLM


@pytest.fixture
def log_args(tmp_path):
    return ["--log-dir", str(tmp_path / "logs")]


def test_parser_defaults():
    args = build_parser().parse_args(["some", "text"])
    assert args.text == ["some", "text"]
    assert args.stakes == "medium"
    assert args.reversibility == "unknown"
    assert args.detectability == "unknown"
    assert args.use == "unknown"
    assert args.alt == []


def test_friendly_output(capsys, log_args):
    llm = FakeLLM()
    code = main(["Weekly", "active", "users", "rose", "12%", "--use", "decision_support"] + log_args, llm=llm)
    out = capsys.readouterr().out
    assert code == 0
    assert out.startswith("Ambiguity Pass")
    assert "Weekly active users rose 12%" in llm.calls[0]["prompt"]
    # CLI default context: medium stakes, unknown reversibility and detectability
    assert "- stakes: medium" in llm.calls[0]["prompt"]


def test_json_output_binds_cli_context(capsys, log_args):
    code = main(
        ["claim", "--json", "--stakes", "high", "--detectability", "hard", "--reversibility", "low", "-a", "audit log"]
        + log_args,
        llm=FakeLLM(),
    )
    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["decision_context"]["stakes"] == "high"
    assert payload["decision_context"]["alternatives_available"] == ["audit log"]
    assert payload["confidence"]["reliance_cap"] == "input_only"
    assert payload["meta"]["model"] == "fake-llm"


def test_technical_output_to_file_quiet(tmp_path, capsys, log_args):
    out_file = tmp_path / "results" / "audit.txt"
    code = main(["claim", "--technical", "--out", str(out_file), "--quiet"] + log_args, llm=FakeLLM())
    assert code == 0
    assert capsys.readouterr().out == ""
    assert out_file.read_text(encoding="utf-8").startswith("Ambiguity Pass - Framework View")


def test_candidate_file_is_gated_offline(tmp_path, capsys, make_candidate, log_args):
    candidate = tmp_path / "candidate.json"
    candidate.write_text(
        json.dumps(make_candidate(confidence={"reliance_cap": "decisive", "reliance": "high", "verification_steps": []})),
        encoding="utf-8",
    )
    llm = FakeLLM()
    code = main(
        ["--candidate", str(candidate), "--json", "--stakes", "low", "--detectability", "easy", "--reversibility", "high"]
        + log_args,
        llm=llm,
    )
    assert code == 0
    assert llm.calls == []
    payload = json.loads(capsys.readouterr().out)
    assert payload["confidence"]["reliance_cap"] == "weight_bearing"
    assert payload["meta"]["model"] == "offline"
    assert any("anti_performativity" in g for g in payload["meta"]["gates_applied"])


def test_invalid_candidate_exits_1(tmp_path, capsys, log_args):
    candidate = tmp_path / "candidate.json"
    candidate.write_text('{"confidence": {"reliance_cap": "absolute"}}', encoding="utf-8")
    code = main(["--candidate", str(candidate)] + log_args, llm=FakeLLM())
    captured = capsys.readouterr()
    assert code == 1
    assert "Error: Schema violation at confidence.reliance_cap" in captured.err
    assert captured.out == ""


def test_missing_file_exits_1(tmp_path, capsys, log_args):
    code = main(["--file", str(tmp_path / "nope.txt")] + log_args, llm=FakeLLM())
    assert code == 1
    assert "Error:" in capsys.readouterr().err


def test_read_representation_precedence(tmp_path):
    source = tmp_path / "rep.txt"
    source.write_text("from file\r\nline two", encoding="utf-8")
    assert read_representation("arg text", str(source)) == "from file\nline two"
    assert read_representation("arg text", None, stdin=io.StringIO("piped")) == "arg text"
    assert read_representation("", None, stdin=io.StringIO("piped")) == "piped"
    assert read_representation("", "-", stdin=io.StringIO("dash")) == "dash"


def test_read_representation_empty_stdin():
    with pytest.raises(InputError):
        read_representation("  ", None, stdin=io.StringIO("   \n"))


def test_write_output_append(tmp_path):
    target = tmp_path / "out.txt"
    write_output(str(target), "first")
    write_output(str(target), "second", append=True)
    text = target.read_text(encoding="utf-8")
    assert text.startswith("first\n")
    assert "===== ambiguity-pass @" in text
    assert text.rstrip().endswith("second")


def test_unwritable_out_exits_1(tmp_path, capsys, make_candidate, log_args):
    candidate = tmp_path / "candidate.json"
    candidate.write_text(json.dumps(make_candidate()), encoding="utf-8")
    out_dir = tmp_path / "existing"
    out_dir.mkdir()
    code = main(["--candidate", str(candidate), "--out", str(out_dir)] + log_args, llm=FakeLLM())
    captured = capsys.readouterr()
    assert code == 1
    assert "Error:" in captured.err
    assert captured.out == ""


@pytest.mark.parametrize("flag", ["--candidate", "--file"])
def test_non_utf8_input_exits_1(tmp_path, capsys, log_args, flag):
    source = tmp_path / "input.bin"
    source.write_bytes(b"\xff\xfe{}")
    code = main([flag, str(source)] + log_args, llm=FakeLLM())
    captured = capsys.readouterr()
    assert code == 1
    assert "is not valid UTF-8 text" in captured.err


def test_read_representation_non_utf8_file(tmp_path):
    source = tmp_path / "rep.txt"
    source.write_bytes(b"\xff\xfe")
    with pytest.raises(InputError):
        read_representation("", str(source))
