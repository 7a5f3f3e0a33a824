from __future__ import annotations

import atexit
import logging
import os
import uuid
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Optional

from flask import Flask, abort, jsonify, render_template, request, send_file, session
from fpdf import FPDF
from fpdf.enums import XPos, YPos
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from models import ANIMAL_EMOJIS, ANIMAL_NAMES, GENDER_LABELS, GENDERS, PERSONALITY_NAMES, AnalysisResult
from pipeline import analyze, analyze_photo
from schemas import AnalyzeRequest, TestResultCreate
from storage import ReportStore
from survey import ANSWER_OPTIONS, QUESTIONS, answers_from_form, missing_question_ids
from text_engine import TextEngine

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config.from_mapping(
    SECRET_KEY=os.environ.get("SECRET_KEY", "replace-this-with-a-random-value"),
    DATABASE_URL=os.environ.get("DATABASE_URL", "sqlite:///teto_egen.db"),
    GEMINI_API_KEY=os.environ.get("GEMINI_API_KEY"),
    GEMINI_MODEL=os.environ.get("GEMINI_MODEL"),
    MASTER_DEEPSEEK_API_KEY=os.environ.get("MASTER_DEEPSEEK_API_KEY"),
    TEXT_ENGINE_TIMEOUT=float(os.environ.get("TEXT_ENGINE_TIMEOUT", "60")),
    PDF_FONT_PATH=os.environ.get("PDF_FONT_PATH"),
    PDF_FONT_BOLD_PATH=os.environ.get("PDF_FONT_BOLD_PATH"),
    MAX_CONTENT_LENGTH=10 * 1024 * 1024,
)

BASE_DIR = Path(__file__).resolve().parent
FONT_DIR = BASE_DIR / "fonts"
PDF_FONT_FAMILY = "KoreanSans"

# Searched in order when PDF_FONT_PATH is not set.
KOREAN_FONT_CANDIDATES: List[Path] = [
    FONT_DIR / "NotoSansKR-Regular.ttf",
    FONT_DIR / "NanumGothic.ttf",
    Path("/usr/share/fonts/truetype/nanum/NanumGothic.ttf"),
    Path("/usr/share/fonts/nanum/NanumGothic.ttf"),
    Path("/usr/share/fonts/truetype/noto/NotoSansKR-Regular.ttf"),
    Path("/Library/Fonts/NanumGothic.ttf"),
    Path("C:/Windows/Fonts/malgun.ttf"),
]
KOREAN_BOLD_FONT_CANDIDATES: List[Path] = [
    FONT_DIR / "NotoSansKR-Bold.ttf",
    FONT_DIR / "NanumGothicBold.ttf",
    Path("/usr/share/fonts/truetype/nanum/NanumGothicBold.ttf"),
    Path("/usr/share/fonts/nanum/NanumGothicBold.ttf"),
    Path("C:/Windows/Fonts/malgunbd.ttf"),
]

TRAIT_LABELS: Dict[str, str] = {
    "extraversion": "외향성",
    "sensing": "감각",
    "thinking": "사고",
    "judging": "판단",
}

COPY: Dict[str, Dict[str, str]] = {
    "site": {
        "tagline": "테토·에겐 관상 테스트",
        "footer": "© 2025 테토에겐 · 사진과 설문으로 알아보는 나의 유형",
    },
    "quiz": {
        "page_title": "테토·에겐 관상 테스트",
        "hero_title": "나는 테토형일까, 에겐형일까?",
        "hero_description": "얼굴 사진 한 장과 10개의 질문으로 동물상과 성격 유형을 분석해드려요.",
        "photo_label": "얼굴 사진",
        "photo_hint": "정면 사진일수록 정확해요. 사진이 없으면 랜덤 특징으로 분석합니다.",
        "gender_label": "성별",
        "submit_button": "결과 보기",
    },
    "result": {
        "page_title": "분석 결과",
        "summary": "성격 요약",
        "physiognomy": "관상학적 특징",
        "keywords": "키워드",
        "dating_style": "연애 스타일",
        "one_liner": "한줄 요약",
        "traits": "성향 점수",
        "emotion": "감성지수",
        "compatibility": "유형별 궁합",
        "recommended": "추천 동물상",
        "download_pdf": "PDF 다운로드",
        "history": "지난 결과 보기",
        "start_over": "다시 하기",
        "not_saved": "결과를 저장하지 못했어요. 결과는 이 화면에서만 확인할 수 있습니다.",
    },
    "history": {
        "page_title": "나의 테스트 기록",
        "empty": "아직 저장된 결과가 없어요.",
    },
    "errors": {
        "missing_questions": "모든 질문에 답해주세요. (누락: {missing})",
        "missing_gender": "성별을 선택해주세요.",
    },
    "pdf": {
        "title": "테토·에겐 관상 리포트",
        "personality": "성격 유형",
        "animal": "동물상",
        "emotion": "감성지수",
        "traits": "성향 점수",
        "compatibility": "유형별 궁합",
        "recommended": "추천 동물상",
    },
}


def get_copy() -> Dict[str, Dict[str, str]]:
    return COPY


def get_store() -> ReportStore:
    store = app.extensions.get("report_store")
    if store is None:
        store = ReportStore(app.config["DATABASE_URL"])
        store.create_all()
        app.extensions["report_store"] = store
    return store


def get_engine() -> TextEngine:
    engine = app.extensions.get("text_engine")
    if engine is None:
        engine = TextEngine.from_config(app.config)
        app.extensions["text_engine"] = engine
    return engine


def shutdown_services() -> None:
    engine = app.extensions.pop("text_engine", None)
    if engine is not None:
        engine.shutdown()
    store = app.extensions.pop("report_store", None)
    if store is not None:
        store.dispose()


atexit.register(shutdown_services)


def current_user_id() -> str:
    if "user_id" not in session:
        session["user_id"] = uuid.uuid4().hex
    return session["user_id"]


@app.context_processor
def inject_copy():
    return {
        "copy": get_copy(),
        "animal_names": ANIMAL_NAMES,
        "animal_emojis": ANIMAL_EMOJIS,
        "personality_names": PERSONALITY_NAMES,
        "gender_labels": GENDER_LABELS,
    }


def to_record(result: AnalysisResult, user_id: Optional[str]) -> Dict[str, object]:
    data = result.to_dict()
    return {
        "user_id": user_id,
        "personality_type": result.personality_type,
        "animal_type": result.animal_type,
        "gender": result.gender,
        "emotion_score": round(result.emotion_score * 100),
        "facial_features": data["facialFeatures"],
        "survey_answers": data["surveyAnswers"],
        "report": data["report"],
    }


def save_result_quietly(result: AnalysisResult, user_id: Optional[str]) -> Optional[int]:
    try:
        stored = get_store().save(to_record(result, user_id))
    except SQLAlchemyError:
        logger.exception("[Results] Action: SAVE, Status: FAIL")
        return None
    return stored.id


def build_result_view(data: Dict[str, Any]) -> Dict[str, Any]:
    report = data["report"]
    traits = report["traitScores"]
    compatibility = report["compatibilityScores"]
    return {
        "personality_type": data["personalityType"],
        "animal_type": data["animalType"],
        "gender": data["gender"],
        "emotion_percent": data["emotionScore"],
        "report": report,
        "traits": [
            {"key": key, "label": label, "score": traits[key]} for key, label in TRAIT_LABELS.items()
        ],
        "compatibility": [
            {"key": key, "label": PERSONALITY_NAMES[key], "score": compatibility[key]}
            for key in ("teto", "tegen", "egen")
        ],
        "recommended": compatibility["recommendedAnimals"],
    }


def sanitize_for_pdf(text: str, unicode_font: bool) -> str:
    replacements = {
        "—": "-",
        "–": "-",
        "“": '"',
        "”": '"',
        "’": "'",
        "…": "...",
        "\ufe0f": "",
        "°": " deg",
    }
    for src, dest in replacements.items():
        text = text.replace(src, dest)
    if unicode_font:
        # Korean text fonts carry no emoji glyphs.
        return "".join(ch for ch in text if ord(ch) < 0x1F000)
    return text.encode("latin-1", "replace").decode("latin-1")


def resolve_pdf_font(config_key: str, candidates: List[Path]) -> Optional[Path]:
    """Return the configured font file, else the first installed candidate."""
    configured = app.config.get(config_key)
    if configured:
        path = Path(configured)
        if path.is_file():
            return path
        logger.warning(f"[PDF] {config_key} points at a missing file: {configured}")
    for path in candidates:
        if path.is_file():
            return path
    return None


def generate_pdf_report(stored: Dict[str, Any]) -> BytesIO:
    pdf = FPDF()
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()

    base_text_color = (32, 37, 45)
    accent_color = (79, 89, 231)

    regular_family = "Helvetica"
    bold_family = "Helvetica"
    bold_style = "B"
    unicode_font = False
    regular_path = resolve_pdf_font("PDF_FONT_PATH", KOREAN_FONT_CANDIDATES)
    bold_path = resolve_pdf_font("PDF_FONT_BOLD_PATH", KOREAN_BOLD_FONT_CANDIDATES)
    try:
        if regular_path is not None:
            pdf.add_font(PDF_FONT_FAMILY, "", str(regular_path))
            regular_family = PDF_FONT_FAMILY
            bold_family = PDF_FONT_FAMILY
            bold_style = ""
            unicode_font = True
        if bold_path is not None and unicode_font:
            pdf.add_font(PDF_FONT_FAMILY, "B", str(bold_path))
            bold_style = "B"
    except (OSError, RuntimeError):
        logger.warning(f"[PDF] Could not load the Korean font {regular_path}, falling back to Helvetica")
        regular_family = "Helvetica"
        bold_family = "Helvetica"
        bold_style = "B"
        unicode_font = False

    def clean(text: object) -> str:
        return sanitize_for_pdf(str(text), unicode_font)

    report = stored["report"]
    pdf_text = get_copy()["pdf"]
    pdf.set_title(clean(pdf_text["title"]))
    pdf.set_author("TetoEgen")
    pdf.set_text_color(*base_text_color)

    pdf.set_font(bold_family, bold_style, 16)
    pdf.multi_cell(0, 10, clean(report["title"]), align="L")
    pdf.ln(2)

    pdf.set_font(regular_family, "", 12)
    personality_type = str(stored["personalityType"])
    animal_type = str(stored["animalType"])
    pdf.cell(0, 8, clean(f"{pdf_text['personality']}: {PERSONALITY_NAMES[personality_type]}"),
             new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.cell(0, 8, clean(f"{pdf_text['animal']}: {ANIMAL_NAMES[animal_type]}"),
             new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.cell(0, 8, clean(f"{pdf_text['emotion']}: {stored['emotionScore']}%"),
             new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(4)

    result_text = get_copy()["result"]
    sections = [
        (result_text["summary"], report["personalitySummary"]),
        (result_text["physiognomy"], report["physiognomyAnalysis"]),
        (result_text["keywords"], "  ".join(report["keywords"])),
        (result_text["dating_style"], report["datingStyle"]),
        (result_text["one_liner"], report["oneLiner"]),
    ]
    for heading, body in sections:
        pdf.set_font(bold_family, bold_style, 13)
        pdf.set_fill_color(244, 245, 251)
        pdf.cell(0, 9, clean(heading), fill=True, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.ln(1)
        pdf.set_font(regular_family, "", 11)
        pdf.multi_cell(0, 6, clean(body), align="L")
        pdf.ln(3)

    pdf.set_font(bold_family, bold_style, 14)
    pdf.set_text_color(*accent_color)
    pdf.cell(0, 8, clean(pdf_text["traits"]), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_text_color(*base_text_color)
    pdf.set_font(regular_family, "", 11)
    traits = report["traitScores"]
    for key, label in TRAIT_LABELS.items():
        pdf.cell(0, 6, clean(f"{label}: {traits[key]}"), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(3)

    compatibility = report["compatibilityScores"]
    pdf.set_font(bold_family, bold_style, 14)
    pdf.set_text_color(*accent_color)
    pdf.cell(0, 8, clean(pdf_text["compatibility"]), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_text_color(*base_text_color)
    pdf.set_font(regular_family, "", 11)
    for key in ("teto", "tegen", "egen"):
        pdf.cell(0, 6, clean(f"{PERSONALITY_NAMES[key]}: {compatibility[key]}"),
                 new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(3)

    pdf.set_font(bold_family, bold_style, 14)
    pdf.set_text_color(*accent_color)
    pdf.cell(0, 8, clean(pdf_text["recommended"]), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_text_color(*base_text_color)
    pdf.set_font(regular_family, "", 11)
    for item in compatibility["recommendedAnimals"]:
        line = f"{ANIMAL_NAMES[item['animalType']]} ({item['score']}): {item['reason']}"
        pdf.multi_cell(0, 6, clean(line), align="L")
        pdf.ln(1)

    buffer = BytesIO()
    pdf.output(buffer)
    buffer.seek(0)
    return buffer


@app.route("/", methods=["GET", "POST"])
def questionnaire():
    if request.method == "POST":
        form_data = request.form.to_dict()
        errors: List[str] = []
        missing = missing_question_ids(form_data)
        if missing:
            errors.append(
                get_copy()["errors"]["missing_questions"].format(
                    missing=", ".join(str(q_id) for q_id in missing)
                )
            )
        gender = form_data.get("gender")
        if gender not in GENDERS:
            errors.append(get_copy()["errors"]["missing_gender"])
        if errors:
            return (
                render_template(
                    "quiz.html",
                    questions=QUESTIONS,
                    options=ANSWER_OPTIONS,
                    error=" ".join(errors),
                    submitted=form_data,
                ),
                400,
            )

        photo = request.files.get("photo")
        image_bytes = photo.read() if photo else None
        result = analyze_photo(image_bytes, answers_from_form(form_data), gender, engine=get_engine())
        result_id = save_result_quietly(result, current_user_id())

        data = result.to_dict()
        data["emotionScore"] = round(result.emotion_score * 100)
        return render_template("result.html", result_id=result_id, **build_result_view(data))

    return render_template(
        "quiz.html",
        questions=QUESTIONS,
        options=ANSWER_OPTIONS,
        error=None,
        submitted={},
    )


@app.post("/api/analyze")
def api_analyze():
    if request.files.get("photo") is not None:
        form_data = request.form.to_dict()
        gender = form_data.get("gender")
        if gender not in GENDERS or missing_question_ids(form_data):
            return jsonify({"error": "Invalid request data"}), 400
        result = analyze_photo(
            request.files["photo"].read(), answers_from_form(form_data), gender, engine=get_engine()
        )
        return jsonify(result.to_dict())

    try:
        payload = AnalyzeRequest.model_validate(request.get_json(silent=True) or {})
    except ValidationError as e:
        logger.info(f"[Results] Action: ANALYZE, Status: REJECTED, Errors: {e.error_count()}")
        return jsonify({"error": "Invalid request data"}), 400

    answers = [answer.to_domain() for answer in payload.surveyAnswers]
    if payload.facialFeatures is None:
        result = analyze_photo(None, answers, payload.gender, engine=get_engine())
    else:
        result = analyze(payload.facialFeatures.to_domain(), answers, payload.gender, engine=get_engine())
    return jsonify(result.to_dict())


@app.post("/api/results")
def create_result():
    try:
        payload = TestResultCreate.model_validate(request.get_json(silent=True) or {})
    except ValidationError as e:
        logger.info(f"[Results] Action: SAVE, Status: REJECTED, Errors: {e.error_count()}")
        return jsonify({"error": "Invalid request data"}), 400

    try:
        stored = get_store().save(payload.to_record())
    except SQLAlchemyError:
        logger.exception("[Results] Action: SAVE, Status: FAIL")
        return jsonify({"error": "Failed to save result"}), 500
    return jsonify(stored.to_dict())


@app.get("/api/results/<user_id>")
def list_results(user_id: str):
    try:
        results = get_store().list_for_user(user_id)
    except SQLAlchemyError:
        logger.exception("[Results] Action: LIST, Status: FAIL")
        return jsonify({"error": "Failed to fetch results"}), 500
    return jsonify([result.to_dict() for result in results])


@app.get("/api/results/detail/<int:result_id>")
def result_detail(result_id: int):
    try:
        result = get_store().get(result_id)
    except SQLAlchemyError:
        logger.exception("[Results] Action: DETAIL, Status: FAIL")
        return jsonify({"error": "Failed to fetch result"}), 500
    if result is None:
        return jsonify({"error": "Result not found"}), 404
    return jsonify(result.to_dict())


@app.get("/history")
def history():
    try:
        results = get_store().list_for_user(current_user_id())
    except SQLAlchemyError:
        logger.exception("[Results] Action: HISTORY, Status: FAIL")
        results = []
    return render_template("history.html", results=[result.to_dict() for result in results])


@app.get("/results/<int:result_id>")
def stored_result(result_id: int):
    try:
        result = get_store().get(result_id)
    except SQLAlchemyError:
        logger.exception("[Results] Action: VIEW, Status: FAIL")
        abort(500)
    if result is None:
        abort(404)
    return render_template("result.html", result_id=result.id, **build_result_view(result.to_dict()))


@app.get("/results/<int:result_id>/pdf")
def export_pdf(result_id: int):
    try:
        result = get_store().get(result_id)
    except SQLAlchemyError:
        logger.exception("[Results] Action: EXPORT_PDF, Status: FAIL")
        abort(500)
    if result is None:
        abort(404)

    pdf_buffer = generate_pdf_report(result.to_dict())
    pdf_buffer.seek(0)

    filename = f"TetoEgen_{result.personality_type}_{result.animal_type}_{result.id}.pdf"
    return send_file(
        pdf_buffer,
        mimetype="application/pdf",
        as_attachment=True,
        download_name=filename,
    )


@app.get("/health")
def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    app.run(debug=True, port=5001)
