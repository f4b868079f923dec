import logging

import requests

from vibe_survey import question_store
from vibe_survey.config import DEFAULT_QUESTIONS_PATH
from vibe_survey.question_store import load_question_bank, parse_question_bank

HEADER = "ILO,Question,Group_A,Option_A,Group_B,Option_B,Group_C,Option_C,Group_D,Option_D,Group_E,Option_E\n"


def test_rows_need_ilo_and_question():
    text = HEADER + (
        "CR,What first?,Tower,Climb,Ocean,Swim,,,,,,\n"
        ",No ILO here,Tower,Climb,,,,,,,,\n"
        "IC,,Tower,Climb,,,,,,,,\n"
        "  ,   ,Tower,Climb,,,,,,,,\n"
        "SW,Second?,Union,Stay,,,,,,,,\n"
    )
    questions = parse_question_bank(text)
    assert [(q.category, q.prompt) for q in questions] == [("CR", "What first?"), ("SW", "Second?")]


def test_partial_rows_keep_missing_options_blank():
    text = "ILO,Question,Group_A,Option_A\nPD,Short row?,Gate,Walk through\n"
    (q,) = parse_question_bank(text)
    assert q.group_value("A") == "Gate"
    assert q.option_value("A") == "Walk through"
    assert q.group_value("E") == ""
    assert q.choices() == [("Gate", "Walk through")]


def test_values_are_trimmed_and_bom_ignored():
    text = "\ufeff" + HEADER + " CR , Spaced? , Tower , Climb ,,,,,,,,\n"
    (q,) = parse_question_bank(text)
    assert q.category == "CR"
    assert q.prompt == "Spaced?"
    assert q.options[0] == ("Tower", "Climb")


def test_empty_text_gives_no_questions():
    assert parse_question_bank("") == []
    assert parse_question_bank(HEADER) == []


def test_bundled_bank_loads():
    questions = load_question_bank(str(DEFAULT_QUESTIONS_PATH))
    assert len(questions) == 30
    assert {q.category for q in questions} == {"CR", "IC", "PD", "SW", "IE"}
    assert all(q.category and q.prompt for q in questions)


def test_url_source_uses_requests(monkeypatch):
    class FakeResponse:
        content = (HEADER + "CR,Remote?,Tower,Climb,,,,,,,,\n").encode("utf-8")

        def raise_for_status(self):
            pass

    calls = []

    def fake_get(url, timeout):
        calls.append((url, timeout))
        return FakeResponse()

    monkeypatch.setattr(question_store.requests, "get", fake_get)
    questions = load_question_bank("https://example.org/legacy_questions.csv")
    assert [q.prompt for q in questions] == ["Remote?"]
    assert calls == [("https://example.org/legacy_questions.csv", question_store.FETCH_TIMEOUT)]


def test_failed_fetch_logs_and_returns_empty(monkeypatch, caplog):
    def boom(url, timeout):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(question_store.requests, "get", boom)
    with caplog.at_level(logging.ERROR, logger="vibe_survey.question_store"):
        assert load_question_bank("https://example.org/legacy_questions.csv") == []
    assert "Error loading questions" in caplog.text


def test_missing_file_returns_empty(tmp_path):
    assert load_question_bank(str(tmp_path / "nope.csv")) == []


def test_url_source_decoded_as_utf8_without_charset(monkeypatch):
    class FakeResponse:
        # What requests reports for text/csv sent without a charset.
        encoding = "ISO-8859-1"
        content = ("\ufeff" + HEADER + "IC,Café or crêpe?,Lands,Café,Ocean,Crêpe,,,,,,\n").encode("utf-8")

        def raise_for_status(self):
            pass

    monkeypatch.setattr(question_store.requests, "get", lambda url, timeout: FakeResponse())
    (q,) = load_question_bank("https://example.org/legacy_questions.csv")
    assert q.prompt == "Café or crêpe?"
    assert q.options[1] == ("Ocean", "Crêpe")


def test_header_without_question_column_gives_nothing(caplog):
    text = "ILO,Prompt,Group_A,Option_A\nCR,Hi?,Tower,Climb\n"
    with caplog.at_level(logging.ERROR, logger="vibe_survey.question_store"):
        assert parse_question_bank(text) == []
    assert "missing" in caplog.text


def test_header_missing_option_columns_warns(caplog):
    text = "ILO,Question,Group_A,Option_A\nCR,Hi?,Tower,Climb\n"
    with caplog.at_level(logging.WARNING, logger="vibe_survey.question_store"):
        (q,) = parse_question_bank(text)
    assert q.choices() == [("Tower", "Climb")]
    assert "Group_B" in caplog.text


def test_header_names_are_trimmed():
    text = " ILO , Question ,Group_A,Option_A\nCR,Hi?,Tower,Climb\n"
    (q,) = parse_question_bank(text)
    assert (q.category, q.prompt) == ("CR", "Hi?")
