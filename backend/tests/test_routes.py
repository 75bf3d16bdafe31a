import asyncio
from types import SimpleNamespace

import pytest

from codearena.api import deps
from codearena.api.v1 import admin as admin_routes
from codearena.api.v1 import contests as contest_routes
from codearena.api.v1 import players as player_routes
from codearena.api.v1 import submissions as submission_routes
from codearena.config import settings
from codearena.models.user import User
from codearena.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    InvalidStatusTransitionError,
    SubmissionAlreadyJudgedError,
)
from codearena.schemas.contest import ContestJoin, ContestStatusUpdate
from codearena.schemas.enums import ContestStatus
from codearena.schemas.submission import JudgeResult, SubmissionCreate


def test_join_then_accepted_verdict_flows_to_leaderboard(db, sink, make_player, make_problem, make_contest):
    problem = make_problem()
    contest = make_contest(problems=[problem])
    player = make_player(preferred_mode="PRECISION")

    participant = contest_routes.join_contest(contest.id, data=None, player=player, db=db)
    assert participant.mode == "PRECISION"
    assert participant.player_id == player.id

    submission = submission_routes.create_submission(
        SubmissionCreate(problem_id=problem.id, contest_id=contest.id, language="python", code="print(1)"),
        player=player,
        db=db,
    )
    assert submission.verdict == "PENDING"

    verdict = submission_routes.submit_verdict(
        submission.id, JudgeResult(verdict="ACCEPTED", runtime_ms=12), _=None, db=db
    )
    assert verdict.outcome == "CREDITED"
    assert verdict.points_earned > 0
    assert verdict.xp_earned > 0
    assert verdict.final_rating is not None

    board = contest_routes.get_contest_leaderboard(
        contest.id, page=1, limit=None, mode=None, current_user=player.user, db=db
    )
    assert board.total == 1
    assert board.entries[0].player_id == player.id
    assert board.entries[0].problems_solved == 1


def test_second_verdict_for_same_submission_is_rejected(db, sink, make_player, make_problem, make_contest):
    problem = make_problem()
    contest = make_contest(problems=[problem])
    player = make_player()
    contest_routes.join_contest(contest.id, data=ContestJoin(mode="GRINDER"), player=player, db=db)
    submission = submission_routes.create_submission(
        SubmissionCreate(problem_id=problem.id, contest_id=contest.id, language="python", code="print(1)"),
        player=player,
        db=db,
    )
    submission_routes.submit_verdict(submission.id, JudgeResult(verdict="WRONG_ANSWER"), _=None, db=db)

    with pytest.raises(SubmissionAlreadyJudgedError) as exc_info:
        submission_routes.submit_verdict(submission.id, JudgeResult(verdict="ACCEPTED"), _=None, db=db)
    assert exc_info.value.status_code == 409


def test_status_route_finalizes_on_end(db, sink, make_player, make_organizer, make_contest, add_participant):
    organizer = make_organizer()
    contest = make_contest()
    first = make_player()
    second = make_player()
    add_participant(contest, first, final_rating=50.0)
    add_participant(contest, second, final_rating=20.0)

    response = contest_routes.change_contest_status(
        contest.id,
        ContestStatusUpdate(status="ENDED"),
        request=SimpleNamespace(client=None),
        current_user=organizer,
        db=db,
    )
    assert response.changed is True
    assert response.finalized is True
    assert response.new_status == ContestStatus.ENDED.value

    with pytest.raises(InvalidStatusTransitionError):
        contest_routes.change_contest_status(
            contest.id,
            ContestStatusUpdate(status="LIVE"),
            request=SimpleNamespace(client=None),
            current_user=organizer,
            db=db,
        )


def test_profile_reports_level_progress(db, make_player):
    player = make_player(xp=0)
    profile = player_routes.get_my_profile(player=player)
    assert profile.username == player.user.username
    assert profile.progress.level == 1
    assert profile.progress.xp_to_next_level == profile.progress.next_level_xp


def test_require_judge_rejects_bad_token():
    with pytest.raises(AuthenticationError):
        asyncio.run(deps.require_judge(x_judge_token="wrong"))
    assert asyncio.run(deps.require_judge(x_judge_token=settings.JUDGE_CALLBACK_TOKEN)) is None


def test_organizer_has_no_player_profile(db, make_organizer):
    organizer = make_organizer()
    with pytest.raises(AuthorizationError):
        asyncio.run(deps.get_current_player(current_user=organizer, db=db))


def test_player_cannot_manage_contests(db, make_player):
    player = make_player()
    with pytest.raises(AuthorizationError):
        asyncio.run(deps.get_current_organizer(current_user=player.user))


def test_admin_audit_trail_and_deactivation(db, sink, make_player, make_organizer, make_contest):
    admin = User(username="root", role="admin", is_active=True)
    db.add(admin)
    db.commit()
    db.refresh(admin)
    organizer = make_organizer()
    contest = make_contest(status=ContestStatus.UPCOMING)
    contest_routes.change_contest_status(
        contest.id,
        ContestStatusUpdate(status="LIVE"),
        request=SimpleNamespace(client=SimpleNamespace(host="10.0.0.7")),
        current_user=organizer,
        db=db,
    )

    trail = admin_routes.get_audit_events(
        limit=100, action=None, target_type="contest", target_id=str(contest.id), current_user=admin, db=db
    )
    assert [e.action for e in trail] == ["contest.status"]
    assert trail[0].metadata == {"from": "UPCOMING", "to": "LIVE"}
    assert trail[0].ip_address == "10.0.0.7"

    player = make_player()
    profile = admin_routes.deactivate_player(player.id, current_user=admin, db=db)
    assert profile.id == player.id
    actions = [e.action for e in admin_routes.get_audit_events(
        limit=10, action="player.deactivate", target_type=None, target_id=None, current_user=admin, db=db
    )]
    assert actions == ["player.deactivate"]

    with pytest.raises(AuthorizationError):
        asyncio.run(deps.get_current_admin_user(current_user=organizer))
