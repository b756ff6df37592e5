"""Generated multiple-choice questions: synthesis, retrieval and answer checking."""
import logging
import random

from study_rpg.db import find
from study_rpg.errors import GenerationUnavailable, NotFound
from study_rpg.generator import parse_json
from study_rpg.locks import collection_lock
from study_rpg.models import Question, new_id

logger = logging.getLogger(__name__)

GENERATED_SOURCE = "Gemini-AI"

DIFFICULTY_BRIEF = {
    1: "basic concepts, direct application of a formula or rule",
    2: "two or three step reasoning that combines concepts",
    3: "multi-step analysis, a hard exam-style question",
}

TOPIC_BANK = {
    "Mathematics": ["Place Value", "Division and Divisibility", "Rational Numbers", "Decimals"],
    "Physics": ["Matter and Its Properties", "Motion", "Force", "Energy"],
    "Chemistry": ["Science of Chemistry", "Atom", "Periodic Table", "Chemical Species"],
}


def question_prompt(subject: str, topic: str, difficulty: int, exam: str = "MSÜ") -> str:
    return f"""You are an expert tutor preparing students for the {exam} exam in {subject}.
Write one multiple-choice question on "{topic}" at this level: {DIFFICULTY_BRIEF[difficulty]}.

QUESTION RULES:
- Slightly harder than a general aptitude test, grounded in practical situations
- May require technical or military-style reasoning
- Exactly 4 options, the correct one placed at a random position
- Reply with JSON only

JSON FORMAT:
{{
    "question": "Question text...",
    "options": ["Option A", "Option B", "Option C", "Option D"],
    "correctIndex": 0,
    "explanation": "Step-by-step solution...",
    "formula": "Formula or rule used",
    "tip": "What to watch out for in the exam"
}}"""


def question_from_generated(data: dict, subject: str, topic: str, difficulty: int,
                            exam: str = "MSÜ") -> Question:
    """Turn a parsed generator reply into a Question, rejecting malformed ones."""
    options = data.get("options")
    correct_index = data.get("correctIndex", data.get("correct_index"))
    if not data.get("question") or not isinstance(options, list) or len(options) != 4:
        raise GenerationUnavailable("generated question is missing text or four options")
    if not isinstance(correct_index, int) or not 0 <= correct_index < len(options):
        raise GenerationUnavailable(f"generated correct index is invalid: {correct_index!r}")
    return Question(
        id=new_id(),
        question=data["question"],
        options=[str(o) for o in options],
        correct_index=correct_index,
        subject=subject,
        topic=topic,
        difficulty=int(difficulty),
        explanation=data.get("explanation", ""),
        formula=data.get("formula", ""),
        tip=data.get("tip", data.get("msuTip", "")),
        exam_type=exam,
        source=GENERATED_SOURCE,
    )


def save_question(store, question: Question) -> None:
    with collection_lock("questions"):
        questions = store.load_all("questions")
        questions.append(question.to_record())
        store.save_all("questions", questions)


def generate_question(store, generator, subject: str, topic: str, difficulty: int,
                      exam: str = "MSÜ") -> Question:
    text = generator.generate(question_prompt(subject, topic, difficulty, exam))
    question = question_from_generated(parse_json(text), subject, topic, difficulty, exam)
    save_question(store, question)
    logger.info("generated %s question %s on %s", subject, question.id, topic)
    return question


def get_questions(store, generator=None, subject: str | None = None,
                  difficulty: int | None = None, limit: int = 5,
                  rng: random.Random | None = None) -> list[Question]:
    """Stored generated questions, topped up by one fresh question when short."""
    rng = rng or random.Random()
    questions = [Question.from_record(q) for q in store.load_all("questions")]
    if subject:
        questions = [q for q in questions if q.subject == subject]
    if difficulty:
        questions = [q for q in questions if q.difficulty == int(difficulty)]
    questions = [q for q in questions if q.source == GENERATED_SOURCE]

    if len(questions) < limit and generator is not None:
        sub = subject or "Mathematics"
        topics = TOPIC_BANK.get(sub)
        topic = rng.choice(topics) if topics else "General"
        diff = int(difficulty) if difficulty else rng.randint(1, 3)
        try:
            questions.append(generate_question(store, generator, sub, topic, diff))
        except GenerationUnavailable as e:
            logger.warning("could not top up questions for %s: %s", sub, e)

    rng.shuffle(questions)
    return questions[:limit]


def check_answer(store, question_id: str, answer: int) -> dict:
    record = find(store.load_all("questions"), question_id)
    if record is None:
        raise NotFound("question", question_id)
    question = Question.from_record(record)
    is_correct = answer == question.correct_index
    return {
        "correct": is_correct,
        "correct_answer": question.correct_index,
        "explanation": question.explanation,
        "formula": question.formula,
        "tip": question.tip,
        "points": question.difficulty * 2 if is_correct else 0,
    }
