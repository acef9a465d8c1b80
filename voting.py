"""Issue vote tally.

Each (issue, user) pair is in one of three states: no vote, upvoted or
downvoted. Repeating the current vote removes it, voting the other way flips
it. The issue keeps a denormalized net counter that is adjusted with a single
atomic UPDATE and never drops below zero.
"""
from dataclasses import dataclass
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError

from activity import record_event
from errors import DependencyError, NotFoundError, ValidationError
from models import Issue, IssueVote, db

UPVOTE = 'upvote'
DOWNVOTE = 'downvote'
VOTE_WEIGHTS = {UPVOTE: 1, DOWNVOTE: -1}


@dataclass
class VoteResult:
    upvotes: int
    user_vote: Optional[str]
    delta: int
    action: str

    def to_dict(self):
        return {
            'upvotes': self.upvotes,
            'userVote': self.user_vote,
            'vote_change': self.delta,
            'action': self.action,
        }


def vote_transition(current_vote, vote_type):
    """Return ``(new_vote, counter_delta)`` for a vote request.

    ``current_vote`` is ``None`` when the user has not voted yet.
    """
    if vote_type not in VOTE_WEIGHTS:
        raise ValidationError.for_field('vote_type', f'Invalid vote type: {vote_type!r}')

    weight = VOTE_WEIGHTS[vote_type]
    if current_vote is None:
        return vote_type, weight
    if current_vote == vote_type:
        return None, -weight
    return vote_type, 2 * weight


def _apply_counter_delta(issue_id, delta):
    adjusted = Issue.upvotes + delta
    db.session.execute(
        sa.update(Issue)
        .where(Issue.id == issue_id)
        .values(upvotes=sa.case((adjusted < 0, 0), else_=adjusted))
        .execution_options(synchronize_session=False)
    )
    return db.session.execute(
        sa.select(Issue.upvotes).where(Issue.id == issue_id)
    ).scalar_one()


def apply_vote(issue_id, user_id, vote_type):
    if vote_type not in VOTE_WEIGHTS:
        raise ValidationError.for_field('vote_type', f'Invalid vote type: {vote_type!r}')

    issue = db.session.get(Issue, issue_id)
    if issue is None:
        raise NotFoundError('Issue not found')

    existing_vote = IssueVote.query.filter_by(issue_id=issue_id, user_id=user_id) \
        .with_for_update().first()

    new_vote, delta = vote_transition(existing_vote.vote_type if existing_vote else None, vote_type)

    if existing_vote is None:
        db.session.add(IssueVote(issue_id=issue_id, user_id=user_id, vote_type=new_vote))
        action = 'added'
    elif new_vote is None:
        db.session.delete(existing_vote)
        action = 'removed'
    else:
        existing_vote.vote_type = new_vote
        action = 'updated'

    try:
        db.session.flush()
    except IntegrityError as e:
        db.session.rollback()
        raise DependencyError(f'Concurrent vote on issue {issue_id} by user {user_id}: {e}') from e

    new_upvotes = _apply_counter_delta(issue_id, delta)
    db.session.expire(issue, ['upvotes'])

    record_event(
        'issue_voted', user_id, 'issue', issue_id,
        vote_type=vote_type,
        vote_change=delta,
        new_upvotes=new_upvotes
    )
    db.session.commit()

    return VoteResult(upvotes=new_upvotes, user_vote=new_vote, delta=delta, action=action)


def get_vote_status(issue_id, user_id):
    issue = db.session.get(Issue, issue_id)
    if issue is None:
        raise NotFoundError('Issue not found')

    vote = IssueVote.query.filter_by(issue_id=issue_id, user_id=user_id).first()
    return {
        'upvotes': issue.upvotes or 0,
        'userVote': vote.vote_type if vote else None,
    }
