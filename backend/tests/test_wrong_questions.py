from datetime import date

from app.models.candidate import Candidate, CandidateExam, CandidateExamWrongQuestion
from app.models.question import Answer, Area, Question, Subarea
from app.services.wrong_questions import WrongQuestionReport, normalize_freq


def _seed(db):
    area = Area(name="Pravila saobraćaja")
    other_area = Area(name="Prva pomoć")
    db.add_all([area, other_area])
    db.flush()
    sub = Subarea(area_id=area.id, name="Raskrsnice")
    other_sub = Subarea(area_id=other_area.id, name="Povrede")
    db.add_all([sub, other_sub])
    db.flush()

    q1 = Question(text="Ko ima prvenstvo?", subarea_id=sub.id, area_id=area.id, points=2)
    q2 = Question(text="Kada se skreće levo?", subarea_id=sub.id, area_id=area.id, points=3)
    q3 = Question(text="Kako se zaustavlja krvarenje?", subarea_id=other_sub.id, area_id=other_area.id, points=1)
    db.add_all([q1, q2, q3])
    db.flush()
    db.add_all(
        [
            Answer(question_id=q1.id, text="Vozilo sa desne strane", is_correct=True),
            Answer(question_id=q1.id, text="Vozilo sa leve strane", is_correct=False),
        ]
    )

    cand = Candidate(first_name="Jelena", last_name="Jovic", id_number="1")
    db.add(cand)
    db.flush()
    exam = CandidateExam(candidate_id=cand.id, exam_date=date(2025, 1, 10))
    db.add(exam)
    db.flush()
    # q1 x3, q2 x2, q3 x1, q2 seen first
    for q in (q2, q1, q1, q3, q2, q1):
        db.add(CandidateExamWrongQuestion(exam_id=exam.id, question_id=q.id))
    db.commit()
    return area, other_area, sub, other_sub, q1, q2, q3


def test_normalize_freq():
    assert [normalize_freq(n) for n in (None, 0, 1, 2, 3, 7)] == [1, 1, 1, 2, 3, 3]


def test_report_sorted_by_frequency(db):
    area, other_area, sub, other_sub, q1, q2, q3 = _seed(db)

    report = WrongQuestionReport(db).build()

    assert report["total_rows"] == 6
    assert [i["id"] for i in report["items"]] == [q1.id, q2.id, q3.id]
    assert [i["frequency"] for i in report["items"]] == [3, 2, 1]
    assert report["area_counts"] == {area.id: 5, other_area.id: 1}
    assert report["subarea_counts"] == {sub.id: 5, other_sub.id: 1}
    assert len(report["items"][0]["answers"]) == 2


def test_report_filters(db):
    area, other_area, sub, other_sub, q1, q2, q3 = _seed(db)
    r = WrongQuestionReport(db)

    assert [i["id"] for i in r.build(freq=2)["items"]] == [q2.id]
    assert [i["id"] for i in r.build(freq=5)["items"]] == [q1.id]
    assert [i["id"] for i in r.build(area_id=other_area.id)["items"]] == [q3.id]
    assert [i["id"] for i in r.build(area_id=area.id, subarea_id=sub.id, freq=1)["items"]] == [q1.id, q2.id]


def test_wrong_questions_endpoint(client, db, admin_headers):
    _, _, _, _, q1, _, _ = _seed(db)
    r = client.get("/questions/wrong", params={"freq": 3}, headers=admin_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["freq"] == 3
    assert [i["id"] for i in body["items"]] == [q1.id]
