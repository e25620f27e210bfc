from datetime import date

import pytest

from docdot.core.errors import NotFound, Unauthenticated
from docdot.models.activity import ACTIVITY_IMAGE_ANSWER, ACTIVITY_QUIZ_ANSWER
from docdot.services.scoring import NO_EXPLANATION, ScoringEngine, category_key
from docdot.services.session_manager import SessionLifecycleManager


@pytest.fixture
def scorer(repo):
    return ScoringEngine(repo)


def test_correct_answer_on_empty_stats(scorer, repo, user, make_question):
    question = make_question(answer=True)

    verdict = scorer.submit_answer(user.id, question, True)

    assert verdict.is_correct is True
    assert verdict.correct_answer is True
    assert verdict.explanation == "Because."
    stats = repo.get_stats(user.id)
    assert stats.total_attempts == 1
    assert stats.correct_answers == 1
    assert stats.streak == 1
    assert stats.max_streak == 1
    assert stats.last_activity_date == date.today()


def test_streak_grows_then_resets_keeping_max(scorer, repo, user, make_question):
    question = make_question(answer=False)

    scorer.submit_answer(user.id, question, False)
    stats = repo.get_stats(user.id)
    assert (stats.streak, stats.max_streak) == (1, 1)

    scorer.submit_answer(user.id, question, False)
    stats = repo.get_stats(user.id)
    assert (stats.streak, stats.max_streak) == (2, 2)

    scorer.submit_answer(user.id, question, True)
    stats = repo.get_stats(user.id)
    assert (stats.streak, stats.max_streak) == (0, 2)
    assert (stats.total_attempts, stats.correct_answers) == (3, 2)


def test_invariants_hold_over_answer_sequence(scorer, repo, user, make_question):
    question = make_question(answer=True)

    for answer in [True, True, False, True, False, False, True, True, True, False]:
        scorer.submit_answer(user.id, question, answer)
        stats = repo.get_stats(user.id)
        assert stats.correct_answers <= stats.total_attempts
        assert stats.max_streak >= stats.streak

    stats = repo.get_stats(user.id)
    assert stats.total_attempts == 10
    assert stats.correct_answers == 6
    assert stats.max_streak == 3
    assert stats.streak == 0


def test_question_category_key_includes_subcategory(scorer, repo, user, make_question):
    first = make_question(category="Anatomy", subcategory="Thorax")
    second = make_question(category="Anatomy", subcategory="Thorax", answer=False)

    scorer.submit_answer(user.id, first, True)
    scorer.submit_answer(user.id, second, True)

    buckets = repo.get_stats(user.id).category_stats
    assert buckets == {"Anatomy-Thorax": {"attempts": 2, "correct": 1}}


def test_question_without_subcategory_uses_category(make_question):
    question = make_question(category="Physiology", subcategory=None)

    assert category_key(question) == "Physiology"


def test_image_answer_keyed_by_category_and_case_sensitive(scorer, repo, user, make_image):
    item = make_image(correct_answer="Aorta", category="Anatomy", subcategory="Thorax")

    wrong = scorer.submit_answer(user.id, item, "aorta")
    right = scorer.submit_answer(user.id, item, "Aorta")

    assert wrong.is_correct is False
    assert right.is_correct is True
    assert right.correct_answer == "Aorta"
    assert repo.get_stats(user.id).category_stats == {"Anatomy": {"attempts": 2, "correct": 1}}


def test_activity_record_is_appended(scorer, repo, user, make_question, make_image):
    question = make_question(answer=True)
    item = make_image()

    scorer.submit_answer(user.id, question, False)
    scorer.submit_answer(user.id, item, "Aorta")

    latest, earlier = repo.list_activity(user.id)
    assert latest.activity_type == ACTIVITY_IMAGE_ANSWER
    assert latest.result == "success"
    assert latest.score == 1
    assert latest.details["user_answer"] == "Aorta"
    assert latest.details["streak"] == 1
    assert earlier.activity_type == ACTIVITY_QUIZ_ANSWER
    assert earlier.result == "failure"
    assert earlier.score == 0
    assert earlier.category == "Anatomy"
    assert earlier.subcategory == "Thorax"
    assert earlier.details["correct_answer"] is True
    assert earlier.details["user_answer"] is False
    assert earlier.details["streak"] == 0


def test_answer_advances_active_session(scorer, repo, user, make_question):
    session = SessionLifecycleManager(repo).start_session(user.id, "Anatomy", "Thorax")

    scorer.submit_answer(user.id, make_question(), True)
    scorer.submit_answer(user.id, make_question(), False)

    assert repo.get_session(session.id).questions_completed == 2


def test_answer_without_session_is_not_an_error(scorer, repo, user, make_question):
    verdict = scorer.submit_answer(user.id, make_question(), True)

    assert verdict.is_correct
    assert repo.get_active_session(user.id) is None


def test_duplicate_answer_in_session_counts_once(scorer, repo, user, make_question):
    session = SessionLifecycleManager(repo).start_session(user.id, "Anatomy", "Thorax")
    question = make_question(answer=True)

    first = scorer.submit_answer(user.id, question, True)
    again = scorer.submit_answer(user.id, question, False)

    assert again.is_correct == first.is_correct is True
    stats = repo.get_stats(user.id)
    assert stats.total_attempts == 1
    assert repo.get_session(session.id).questions_completed == 1
    assert len(repo.list_activity(user.id)) == 1


def test_same_item_counts_again_in_new_session(scorer, repo, user, make_question):
    manager = SessionLifecycleManager(repo)
    question = make_question(answer=True)

    manager.start_session(user.id, "Anatomy")
    scorer.submit_answer(user.id, question, True)
    manager.start_session(user.id, "Anatomy")
    scorer.submit_answer(user.id, question, True)

    assert repo.get_stats(user.id).total_attempts == 2


def test_stats_created_lazily(scorer, repo, user, make_question):
    assert repo.get_stats(user.id) is None

    scorer.submit_answer(user.id, make_question(), True)

    assert repo.get_stats(user.id) is not None


def test_explanation_falls_back(scorer, repo, user):
    question = repo.create_question(
        question="Q", answer=True, explanation=None, ai_explanation="AI says so", category="Anatomy"
    )
    bare = repo.create_question(question="Q2", answer=True, category="Anatomy")
    repo.commit()

    assert scorer.submit_answer(user.id, question, True).explanation == "AI says so"
    assert scorer.submit_answer(user.id, bare, True).explanation == NO_EXPLANATION


def test_unknown_items_raise_not_found(scorer, user):
    with pytest.raises(NotFound):
        scorer.answer_question(user.id, 404, True)
    with pytest.raises(NotFound):
        scorer.answer_image(user.id, 404, "Aorta")


def test_missing_user_is_unauthenticated(scorer, make_question):
    with pytest.raises(Unauthenticated):
        scorer.submit_answer(None, make_question(), True)
    with pytest.raises(Unauthenticated):
        scorer.answer_question(None, 1, True)
