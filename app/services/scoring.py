"""
Grading of submitted quiz attempts
"""
from typing import Dict, Iterable


def grade_attempt(questions: Iterable, answers: Dict[str, str]) -> dict:
    """Compare submitted option texts with the stored correct answers.

    `answers` maps question id to the option text the user picked. A question
    without an answer counts as wrong.
    """
    results = []
    correct_count = 0
    for q in questions:
        given = (answers.get(q.id) or "").strip()
        is_correct = bool(given) and given == (q.correct_answer or "").strip()
        if is_correct:
            correct_count += 1
        results.append({
            "question_id": q.id,
            "question_text": q.text,
            "user_answer": given,
            "correct_answer": q.correct_answer,
            "is_correct": is_correct,
            "explanation": q.explanation,
        })

    total = len(results)
    score = round(correct_count / total * 100, 2) if total else 0.0
    return {
        "correct_count": correct_count,
        "total_questions": total,
        "score": score,
        "results": results,
    }
