from io import BytesIO

import pytest

from sqlalchemy.exc import SQLAlchemyError

from app import (
    KOREAN_FONT_CANDIDATES,
    QUESTIONS,
    app,
    generate_pdf_report,
    get_store,
    resolve_pdf_font,
    sanitize_for_pdf,
    shutdown_services,
)


@pytest.fixture
def client(tmp_path):
    shutdown_services()
    app.config.update(
        TESTING=True,
        DATABASE_URL=f"sqlite:///{tmp_path / 'results.db'}",
        GEMINI_API_KEY=None,
        MASTER_DEEPSEEK_API_KEY=None,
    )
    with app.test_client() as client:
        yield client
    shutdown_services()


def _baseline_answers():
    return {question.field_name: "B" for question in QUESTIONS}


def _bear_payload():
    return {
        "facialFeatures": {
            "eyebrowAngle": 0.0,
            "lipCurvature": 0.0,
            "jawlineAngle": 96.0,
            "faceWidthRatio": 1.7,
            "eyeDistance": 90.0,
        },
        "surveyAnswers": [{"questionId": q.id, "answer": "A"} for q in QUESTIONS],
        "gender": "male",
    }


def _save_payload(report, user_id="user-1"):
    payload = _bear_payload()
    payload.update(
        userId=user_id,
        personalityType="tegen",
        animalType="bear",
        emotionScore=50,
        report=report,
    )
    return payload


def test_quiz_page_lists_questions(client):
    response = client.get("/")
    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert QUESTIONS[0].prompt in body
    assert 'name="q10"' in body


def test_missing_answers_rerender_with_error(client):
    answers = _baseline_answers()
    del answers["q4"]
    answers["gender"] = "female"
    response = client.post("/", data=answers)

    assert response.status_code == 400
    body = response.get_data(as_text=True)
    assert "모든 질문에 답해주세요" in body
    assert "4" in body


def test_missing_gender_is_rejected(client):
    response = client.post("/", data=_baseline_answers())
    assert response.status_code == 400
    assert "성별을 선택해주세요" in response.get_data(as_text=True)


def test_full_submission_renders_and_saves_result(client):
    payload = {"gender": "female", **_baseline_answers()}
    response = client.post("/", data=payload)

    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert "테겐형입니다" in body
    assert "PDF 다운로드" in body

    history = client.get("/history")
    assert history.status_code == 200
    assert "테겐형입니다" in history.get_data(as_text=True)


def test_submission_with_unreadable_photo_still_succeeds(client):
    payload = {"gender": "male", "photo": (BytesIO(b"not a jpeg"), "face.jpg"), **_baseline_answers()}
    response = client.post("/", data=payload, content_type="multipart/form-data")
    assert response.status_code == 200


def test_api_analyze_with_features(client):
    response = client.post("/api/analyze", json=_bear_payload())

    assert response.status_code == 200
    data = response.get_json()
    assert data["animalType"] == "bear"
    assert data["personalityType"] == "tegen"
    assert data["emotionScore"] == 0.5
    assert len(data["report"]["keywords"]) == 3
    assert len(data["report"]["compatibilityScores"]["recommendedAnimals"]) == 3


def test_api_analyze_with_photo_upload(client):
    payload = {"gender": "female", "photo": (BytesIO(b"garbage"), "face.png"), **_baseline_answers()}
    response = client.post("/api/analyze", data=payload, content_type="multipart/form-data")

    assert response.status_code == 200
    assert response.get_json()["report"]["title"].startswith("당신은")


def test_api_analyze_rejects_bad_payload(client):
    payload = _bear_payload()
    payload["gender"] = "robot"
    response = client.post("/api/analyze", json=payload)
    assert response.status_code == 400
    assert response.get_json() == {"error": "Invalid request data"}


def test_results_api_round_trip(client, sample_report):
    created = client.post("/api/results", json=_save_payload(sample_report))
    assert created.status_code == 200
    saved = created.get_json()
    assert saved["id"] is not None
    assert saved["createdAt"]

    listed = client.get("/api/results/user-1")
    assert listed.status_code == 200
    assert [item["id"] for item in listed.get_json()] == [saved["id"]]

    detail = client.get(f"/api/results/detail/{saved['id']}")
    assert detail.status_code == 200
    assert detail.get_json()["report"] == sample_report


def test_results_api_rejects_malformed_report(client, sample_report):
    sample_report["keywords"] = ["only one"]
    response = client.post("/api/results", json=_save_payload(sample_report))
    assert response.status_code == 400
    assert response.get_json() == {"error": "Invalid request data"}


def test_unknown_result_is_404(client):
    response = client.get("/api/results/detail/999")
    assert response.status_code == 404
    assert response.get_json() == {"error": "Result not found"}
    assert client.get("/results/999").status_code == 404
    assert client.get("/results/999/pdf").status_code == 404


def test_stored_result_page(client, sample_report):
    saved = client.post("/api/results", json=_save_payload(sample_report)).get_json()
    response = client.get(f"/results/{saved['id']}")
    assert response.status_code == 200
    assert sample_report["oneLiner"] in response.get_data(as_text=True)


def test_pdf_export_endpoint(client, sample_report):
    saved = client.post("/api/results", json=_save_payload(sample_report)).get_json()
    response = client.get(f"/results/{saved['id']}/pdf")

    assert response.status_code == 200
    assert response.headers["Content-Type"] == "application/pdf"
    content_disposition = response.headers.get("Content-Disposition", "")
    assert "TetoEgen_" in content_disposition
    assert content_disposition.endswith(".pdf")
    assert response.data.startswith(b"%PDF")


def test_pdf_export_passes_stored_result(client, sample_report, monkeypatch):
    captured = {}

    def fake_generate_pdf_report(stored):
        captured["stored"] = stored
        return BytesIO(b"stub")

    monkeypatch.setattr("app.generate_pdf_report", fake_generate_pdf_report)

    saved = client.post("/api/results", json=_save_payload(sample_report)).get_json()
    response = client.get(f"/results/{saved['id']}/pdf")
    assert response.status_code == 200
    assert captured["stored"]["id"] == saved["id"]
    assert captured["stored"]["report"]["title"] == sample_report["title"]


def test_sanitize_for_pdf_without_korean_font():
    assert sanitize_for_pdf("a — b “c”", unicode_font=False) == 'a - b "c"'
    assert sanitize_for_pdf("테토 🐻", unicode_font=False) == "?? ?"
    assert sanitize_for_pdf("테토 🐻", unicode_font=True) == "테토 "


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}


class RecordingPDF:
    """Stands in for FPDF and keeps every string handed to the page."""

    last = None

    def __init__(self):
        self.fonts = []
        self.texts = []
        RecordingPDF.last = self

    def add_font(self, family, style, fname):
        self.fonts.append((family, style, fname))

    def set_title(self, title):
        self.texts.append(title)

    def cell(self, w, h, text="", **kwargs):
        self.texts.append(text)

    def multi_cell(self, w, h, text="", **kwargs):
        self.texts.append(text)

    def output(self, buffer):
        buffer.write(b"%PDF-1.4 recorded")

    def __getattr__(self, name):
        return lambda *args, **kwargs: None


def test_pdf_uses_configured_korean_font(client, sample_report, monkeypatch, tmp_path):
    font_path = tmp_path / "Korean.ttf"
    font_path.write_bytes(b"\x00\x01\x00\x00")
    monkeypatch.setitem(app.config, "PDF_FONT_PATH", str(font_path))
    monkeypatch.setattr("app.FPDF", RecordingPDF)

    saved = client.post("/api/results", json=_save_payload(sample_report)).get_json()
    generate_pdf_report(saved)
    pdf = RecordingPDF.last

    assert pdf.fonts[0][2] == str(font_path)
    text = "\n".join(pdf.texts)
    assert "?" not in text
    assert "곰상" in text
    assert "테겐형" in text
    assert sample_report["personalitySummary"] in text
    assert sample_report["oneLiner"] in text


def test_missing_configured_font_falls_back_to_search(monkeypatch, tmp_path):
    installed = tmp_path / "NanumGothic.ttf"
    installed.write_bytes(b"\x00\x01\x00\x00")
    monkeypatch.setitem(app.config, "PDF_FONT_PATH", str(tmp_path / "missing.ttf"))

    assert resolve_pdf_font("PDF_FONT_PATH", [tmp_path / "absent.ttf", installed]) == installed
    assert resolve_pdf_font("PDF_FONT_PATH", [tmp_path / "absent.ttf"]) is None


@pytest.mark.skipif(
    resolve_pdf_font("PDF_FONT_PATH", KOREAN_FONT_CANDIDATES) is None,
    reason="no Korean TrueType font installed",
)
def test_pdf_embeds_installed_korean_font(client, sample_report):
    saved = client.post("/api/results", json=_save_payload(sample_report)).get_json()
    response = client.get(f"/results/{saved['id']}/pdf")

    assert response.status_code == 200
    assert b"/FontFile2" in response.data


@pytest.mark.parametrize(
    "mutate",
    [
        lambda report: report.update(keywords="abc"),
        lambda report: report["compatibilityScores"].update(teto="70"),
        lambda report: report["compatibilityScores"]["recommendedAnimals"][0].update(score="95"),
        lambda report: report["traitScores"].update(judging="50"),
        lambda report: report.update(title=""),
    ],
)
def test_results_api_rejects_loosely_typed_report(client, sample_report, mutate):
    mutate(sample_report)
    response = client.post("/api/results", json=_save_payload(sample_report))

    assert response.status_code == 400
    assert response.get_json() == {"error": "Invalid request data"}
    assert client.get("/api/results/user-1").get_json() == []


def test_store_failure_on_result_pages_is_logged(client, monkeypatch, caplog):
    def broken_get(result_id):
        raise SQLAlchemyError("database is locked")

    monkeypatch.setattr(get_store(), "get", broken_get)

    assert client.get("/results/1").status_code == 500
    assert client.get("/results/1/pdf").status_code == 500
    assert "Action: VIEW, Status: FAIL" in caplog.text
    assert "Action: EXPORT_PDF, Status: FAIL" in caplog.text
