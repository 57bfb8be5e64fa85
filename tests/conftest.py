import asyncio
import random

import pytest

from spotlight_api.core.errors import NotFoundError, QueryError


def quiz_payload(quiz_id):
    questions = []
    for n in range(2):
        question_id = f"{quiz_id}-q{n}"
        questions.append({
            "question_id": question_id,
            "quiz_id": quiz_id,
            "question": f"Question {n}?",
            "answers": [
                {"answer_id": f"{question_id}-a{k}", "question_id": question_id,
                 "quiz_id": quiz_id, "is_correct": k == 0}
                for k in range(3)
            ],
        })
    return {"quiz_id": quiz_id, "name": f"Quiz {quiz_id}", "questions": questions}


def neo_payload(neo_id):
    return {"neo_id": neo_id, "name": f"({neo_id})", "size": 100, "range": 5, "velocity": 12}


class FakeSource:
    """In-memory candidate pool that records every query it answers."""

    def __init__(self, id_column, ids, build=None, log=None):
        self.id_column = id_column
        self.ids = list(ids)
        self.build = build or (lambda item_id: {id_column: item_id})
        self.calls = []
        self.fail = None
        self.gate = None
        self.log = log

    async def select_excluding(self, exclude_id):
        self.calls.append(exclude_id)
        if self.log is not None:
            self.log.append(("query", self.id_column))
        if self.gate is not None:
            await self.gate.wait()
        await asyncio.sleep(0)
        if self.fail is not None:
            raise self.fail
        eligible = [i for i in self.ids if i != exclude_id]
        if not eligible:
            raise NotFoundError(f"No candidate excluding {exclude_id}")
        return self.build(random.choice(eligible))

    async def select_by_id(self, item_id):
        if self.fail is not None:
            raise self.fail
        if item_id not in self.ids:
            raise NotFoundError(f"No item {item_id}")
        return self.build(item_id)


@pytest.fixture
def quiz_source():
    return FakeSource("quiz_id", ["q1", "q2", "q3"], build=quiz_payload)


@pytest.fixture
def neo_source():
    return FakeSource("neo_id", ["n1", "n2", "n3"], build=neo_payload)


@pytest.fixture
def query_error():
    return QueryError("connection reset")
