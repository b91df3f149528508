import io
import logging
from typing import Any, Dict, List, Optional

import pandas as pd
from sqlalchemy.orm import Session

from tryout_app.application.access_policy import ActingIdentity, ensure_can_mutate, require_identity
from tryout_app.application.errors import NotFound, ValidationError
from tryout_app.application.operation import failure_result
from tryout_app.application.questions.question_validation import dump_question_data, validate_question_data
from tryout_app.infrastructure.db.models import QuestionModel
from tryout_app.infrastructure.repositories.question_repository import QuestionRepository
from tryout_app.infrastructure.repositories.tryout_repository import TryoutRepository
from tryout_app.presentation.schemas.bulk_question_schema import BulkUploadResponse
from tryout_app.presentation.schemas.question_data_schema import DEFAULT_QUESTION_SCORE, OPTION_IDS, QuestionType
from tryout_app.presentation.schemas.result_schema import OperationResult

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["question_text"]
SUPPORTED_TYPES = {
    QuestionType.MULTIPLE_CHOICE,
    QuestionType.MULTIPLE_RESPONSE,
    QuestionType.TRUE_FALSE,
    QuestionType.SHORT_ANSWER,
    QuestionType.ESSAY,
}
TRUE_VALUES = {"true", "benar", "b", "1", "yes", "ya"}
FALSE_VALUES = {"false", "salah", "s", "0", "no", "tidak"}


def read_sheet(file_content: bytes, filename: str) -> pd.DataFrame:
    if filename.endswith(".csv"):
        df = pd.read_csv(io.BytesIO(file_content), dtype=str, keep_default_na=False)
    elif filename.endswith(".xlsx"):
        df = pd.read_excel(io.BytesIO(file_content), dtype=str, keep_default_na=False)
    else:
        raise ValidationError("file", "Unsupported file format. Please upload CSV or XLSX.")

    # Clean column names
    df.columns = [str(c).strip().lower() for c in df.columns]
    for col in REQUIRED_COLUMNS:
        if col not in df.columns:
            raise ValidationError("file", f"Missing required column: {col}")
    return df


def _text(value: str) -> List[Dict[str, str]]:
    return [{"type": "text", "content": value}]


def _cell(row: pd.Series, column: str) -> str:
    if column not in row.index:
        return ""
    value = row[column]
    if pd.isna(value):
        return ""
    return str(value).strip()


def _option_letter(value: str, options: List[Dict[str, Any]]) -> str:
    """Accept a letter, a 1-based index or the exact option text."""
    value = value.strip()
    if value.upper() in OPTION_IDS:
        return value.upper()
    if value.replace(".0", "").isdigit():
        index = int(float(value)) - 1
        if 0 <= index < len(OPTION_IDS):
            return OPTION_IDS[index]
    for option in options:
        if option["content"][0]["content"] == value:
            return option["id"]
    return value


def build_question_payload(row: pd.Series) -> Dict[str, Any]:
    """Turn one sheet row into `{question_type, question_data, score}`."""
    raw_type = _cell(row, "question_type") or QuestionType.MULTIPLE_CHOICE.value
    try:
        question_type = QuestionType(raw_type.lower())
    except ValueError:
        raise ValidationError("question_type", f"Unknown question type '{raw_type}'")
    if question_type not in SUPPORTED_TYPES:
        raise ValidationError("question_type", f"'{question_type.value}' cannot be imported from a sheet")

    data: Dict[str, Any] = {"question": _text(_cell(row, "question_text"))}
    correct = _cell(row, "correct_answer")

    if question_type in (QuestionType.MULTIPLE_CHOICE, QuestionType.MULTIPLE_RESPONSE):
        options = []
        for letter in OPTION_IDS:
            text = _cell(row, f"option_{letter.lower()}")
            if text:
                options.append({"id": letter, "content": _text(text)})
        data["options"] = options
        if question_type == QuestionType.MULTIPLE_CHOICE:
            data["correct_answer"] = _option_letter(correct, options)
        else:
            data["correct_answers"] = [_option_letter(part, options) for part in correct.split(",") if part.strip()]
    elif question_type == QuestionType.TRUE_FALSE:
        if correct.lower() in TRUE_VALUES:
            data["correct_answer"] = True
        elif correct.lower() in FALSE_VALUES:
            data["correct_answer"] = False
        else:
            raise ValidationError("correct_answer", f"'{correct}' is not a true/false value")
    elif question_type == QuestionType.SHORT_ANSWER:
        data["correct_answers"] = [part.strip() for part in correct.split("|") if part.strip()]

    explanation = _cell(row, "explanation")
    if explanation:
        data["explanation"] = _text(explanation)

    score_value = _cell(row, "score")
    try:
        score = int(float(score_value)) if score_value else DEFAULT_QUESTION_SCORE
    except ValueError:
        raise ValidationError("score", f"'{score_value}' is not a number")
    if score < 1:
        raise ValidationError("score", "must be a positive integer")

    return {"question_type": question_type, "question_data": data, "score": score}


def process_bulk_upload(
    db: Session,
    file_content: bytes,
    filename: str,
    tryout_id: str,
    actor: Optional[ActingIdentity],
) -> OperationResult:
    try:
        actor = require_identity(actor)
        tryout_repo = TryoutRepository(db)
        question_repo = QuestionRepository(db)

        tryout = tryout_repo.get_by_id(tryout_id)
        if not tryout:
            raise NotFound("Tryout not found")
        ensure_can_mutate(actor, tryout.creator_id, "No permission to add questions to this tryout")

        logger.info(f"Processing bulk upload: {filename} for tryout {tryout_id}")
        df = read_sheet(file_content, filename)

        next_number = question_repo.get_max_number(tryout_id) + 1
        inserted = 0
        failed = 0
        errors = []

        for index, row in df.iterrows():
            try:
                payload = build_question_payload(row)
                question_data = validate_question_data(payload["question_type"], payload["question_data"])
            except ValidationError as e:
                failed += 1
                errors.append(f"Row {index + 2}: {e.message}")
                continue

            question_repo.add(
                QuestionModel(
                    tryout_id=tryout_id,
                    question_number=next_number,
                    question_type=payload["question_type"].value,
                    question_data=dump_question_data(question_data),
                    score=payload["score"],
                )
            )
            next_number += 1
            inserted += 1

        db.commit()
        logger.info(f"Bulk upload finished. Inserted: {inserted}, Failed: {failed}")
        return OperationResult.ok(
            BulkUploadResponse(total_rows=len(df), inserted=inserted, failed=failed, errors=errors)
        )
    except Exception as e:
        return failure_result(db, "Bulk upload", e, "Bulk upload failed")
