import pandas as pd
import pytest

from tryout_app.application.errors import ValidationError
from tryout_app.application.questions.bulk_import_usecase import (
    build_question_payload,
    process_bulk_upload,
    read_sheet,
)
from tryout_app.presentation.schemas.question_data_schema import QuestionType

SHEET = (
    "question_type,question_text,option_a,option_b,option_c,correct_answer,score,explanation\n"
    "multiple_choice,2 + 2 = ?,3,4,5,B,20,Dua tambah dua\n"
    "true_false,Langit berwarna biru,,,,benar,,\n"
    "short_answer,Ibukota Indonesia?,,,,Jakarta|jakarta,,\n"
    "essay,Jelaskan fotosintesis,,,,,,\n"
    "multiple_choice,Soal rusak,satu,,,Z,,\n"
    "ordering,Urutkan,,,,,,\n"
)


@pytest.fixture
def tryout(make_tryout, guru1):
    return make_tryout(guru1)


def _row(**cells):
    return pd.Series(cells)


def test_build_payload_accepts_option_text_and_index():
    by_index = build_question_payload(
        _row(question_text="1 + 1?", option_a="1", option_b="2", correct_answer="2")
    )
    assert by_index["question_type"] == QuestionType.MULTIPLE_CHOICE
    # "2" reads as the second option before it is compared with option text
    assert by_index["question_data"]["correct_answer"] == "B"

    by_text = build_question_payload(
        _row(question_text="Warna daun?", option_a="merah", option_b="hijau", correct_answer="hijau")
    )
    assert by_text["question_data"]["correct_answer"] == "B"
    assert by_text["score"] == 10


def test_build_payload_multiple_response_and_true_false():
    payload = build_question_payload(
        _row(
            question_type="multiple_response",
            question_text="Bilangan prima?",
            option_a="2",
            option_b="4",
            option_c="7",
            correct_answer="a, c",
        )
    )
    assert payload["question_data"]["correct_answers"] == ["A", "C"]

    payload = build_question_payload(_row(question_type="TRUE_FALSE", question_text="Es itu dingin", correct_answer="Salah"))
    assert payload["question_data"]["correct_answer"] is False


def test_build_payload_rejects_bad_cells():
    with pytest.raises(ValidationError) as exc:
        build_question_payload(_row(question_type="true_false", question_text="?", correct_answer="mungkin"))
    assert exc.value.field == "correct_answer"

    with pytest.raises(ValidationError) as exc:
        build_question_payload(_row(question_text="?", option_a="x", option_b="y", correct_answer="A", score="0"))
    assert exc.value.field == "score"

    with pytest.raises(ValidationError) as exc:
        build_question_payload(_row(question_type="matching", question_text="?"))
    assert exc.value.field == "question_type"


def test_read_sheet_requires_question_text_column():
    with pytest.raises(ValidationError) as exc:
        read_sheet(b"soal,jawaban\nx,y\n", "questions.csv")
    assert "question_text" in exc.value.message


def test_bulk_upload_inserts_valid_rows_and_reports_bad_ones(db, question_service, guru1, tryout, make_question):
    make_question(guru1, tryout.id)

    result = process_bulk_upload(db, SHEET.encode("utf-8"), "questions.csv", tryout.id, guru1)

    assert result.success, result.error
    assert result.data.total_rows == 6
    assert result.data.inserted == 4
    assert result.data.failed == 2
    assert result.data.errors[0].startswith("Row 6: options")
    assert result.data.errors[1].startswith("Row 7: question_type")

    questions = question_service.list(tryout.id).data
    assert [q.question_number for q in questions] == [1, 2, 3, 4, 5]
    assert [q.question_type.value for q in questions[1:]] == ["multiple_choice", "true_false", "short_answer", "essay"]
    assert questions[1].score == 20
    assert questions[1].question_data["explanation"] == [{"type": "text", "content": "Dua tambah dua"}]
    assert questions[3].question_data["correct_answers"] == ["Jakarta", "jakarta"]
    assert questions[4].requires_manual_grading is True


def test_bulk_upload_rejects_unsupported_file(db, guru1, tryout):
    result = process_bulk_upload(db, b"whatever", "questions.pdf", tryout.id, guru1)
    assert result.success is False
    assert result.status_code == 422
    assert "Unsupported file format" in result.error


def test_bulk_upload_needs_permission_on_tryout(db, guru2, siswa1, tryout):
    for actor in (guru2, siswa1):
        result = process_bulk_upload(db, SHEET.encode("utf-8"), "questions.csv", tryout.id, actor)
        assert result.status_code == 403

    assert process_bulk_upload(db, b"", "q.csv", tryout.id, None).status_code == 401
    assert process_bulk_upload(db, b"", "q.csv", "tryout-missing", guru2).status_code == 404


def test_bulk_upload_skips_row_without_question_text(db, question_service, guru1, tryout):
    sheet = (
        "question_type,question_text,option_a,option_b,correct_answer\n"
        "multiple_choice,,x,y,A\n"
        "multiple_choice,Pilih x,x,y,A\n"
    )

    result = process_bulk_upload(db, sheet.encode("utf-8"), "questions.csv", tryout.id, guru1)

    assert result.success, result.error
    assert result.data.inserted == 1
    assert result.data.errors == ["Row 2: question: question content is required"]
    questions = question_service.list(tryout.id).data
    assert [q.question_data["question"] for q in questions] == [[{"type": "text", "content": "Pilih x"}]]


def test_bulk_upload_accepts_only_csv_and_xlsx(db, guru1, tryout):
    result = process_bulk_upload(db, b"legacy", "questions.xls", tryout.id, guru1)
    assert result.status_code == 422
    assert "Unsupported file format" in result.error
