"""
spotlight_api/sources/assembly.py
═══════════════════════════════════════════════════════════════════════════════
Turns one raw PostgREST row into the payload the cache commits.

Quiz shape (all three levels carry quiz_id; answers also carry question_id):

  {quiz_id, ..., questions: [{question_id, quiz_id, ...,
                              answers: [{answer_id, question_id, quiz_id, ...}]}]}

All-or-nothing: any missing level or a foreign key pointing at the wrong
parent raises AssemblyError, so a half-built tree never reaches the cache.
═══════════════════════════════════════════════════════════════════════════════
"""

from spotlight_api.core.errors import AssemblyError


def _require(row: dict, key: str, where: str):
    if not isinstance(row, dict) or row.get(key) is None:
        raise AssemblyError(f"{where}: missing '{key}'")
    return row[key]


def assemble_quiz(row: dict) -> dict:
    quiz_id = _require(row, "quiz_id", "quiz")
    questions = row.get("questions")
    if not isinstance(questions, list):
        raise AssemblyError(f"quiz {quiz_id}: questions not embedded")

    built = []
    for q in questions:
        question_id = _require(q, "question_id", f"quiz {quiz_id} question")
        if q.get("quiz_id") != quiz_id:
            raise AssemblyError(f"question {question_id} belongs to quiz {q.get('quiz_id')}, not {quiz_id}")
        answers = q.get("answers")
        if not isinstance(answers, list):
            raise AssemblyError(f"question {question_id}: answers not embedded")

        for a in answers:
            if not isinstance(a, dict):
                raise AssemblyError(f"question {question_id}: malformed answer row")
            if a.get("question_id") != question_id:
                raise AssemblyError(f"answer under question {question_id} points at {a.get('question_id')}")
            # quiz_id on answers is denormalised; only check it when present
            if "quiz_id" in a and a["quiz_id"] != quiz_id:
                raise AssemblyError(f"answer under question {question_id} points at quiz {a['quiz_id']}")

        built.append({**q, "answers": [dict(a) for a in answers]})

    return {**row, "questions": built}


def assemble_neo(row: dict) -> dict:
    _require(row, "neo_id", "neo")
    return dict(row)


ASSEMBLERS = {
    "quiz": assemble_quiz,
    "neo":  assemble_neo,
}
