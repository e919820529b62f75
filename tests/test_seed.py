"""
IdeaVerse Backend — Sample Data Loader Tests
==============================================

What:  Tests for ideaverse/seed.py without a database.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from ideaverse.models.idea import IdeaCategory
from ideaverse.seed import SAMPLE_IDEAS, build_sample_ideas, main, seed


def _scope(session):
    cm = MagicMock()
    cm.__aenter__ = AsyncMock(return_value=session)
    cm.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=cm)


def test_one_sample_per_category():
    ideas = build_sample_ideas()

    assert len(ideas) == len(SAMPLE_IDEAS) == 6
    assert sorted(idea.category for idea in ideas) == sorted(IdeaCategory.values())
    assert all(idea.like_count == 0 and idea.liked_by == [] for idea in ideas)
    assert len({idea.id for idea in ideas}) == 6


def test_first_sample_is_newest():
    ideas = build_sample_ideas()

    created = [idea.created_at for idea in ideas]
    assert created == sorted(created, reverse=True)


@pytest.mark.asyncio
async def test_seed_replaces_existing(mock_db_session):
    mock_db_session.add_all = MagicMock()
    mock_db_session.execute.return_value = MagicMock(rowcount=3)

    with patch("ideaverse.seed.session_scope", _scope(mock_db_session)), \
         patch("ideaverse.seed.dispose_engine", AsyncMock()) as dispose:
        inserted = await seed()

    assert inserted == 6
    assert str(mock_db_session.execute.call_args.args[0]).startswith("DELETE FROM ideas")
    assert len(mock_db_session.add_all.call_args.args[0]) == 6
    dispose.assert_awaited_once()


@pytest.mark.asyncio
async def test_seed_keep_existing(mock_db_session):
    mock_db_session.add_all = MagicMock()

    with patch("ideaverse.seed.session_scope", _scope(mock_db_session)), \
         patch("ideaverse.seed.dispose_engine", AsyncMock()):
        await seed(keep_existing=True)

    mock_db_session.execute.assert_not_awaited()
    mock_db_session.add_all.assert_called_once()


def test_main_exit_codes():
    with patch("ideaverse.seed.seed", AsyncMock(return_value=6)) as run:
        assert main(["--keep-existing"]) == 0
    run.assert_awaited_once_with(keep_existing=True)

    with patch("ideaverse.seed.seed", AsyncMock(side_effect=OSError("connection refused"))):
        assert main([]) == 1
