"""Tests for configuration validation, the primary invariant and inheritance cloning."""

from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from domain.errors import ValidationError
from domain.media import Domain
from models import PenaltyApplication, RankingConfiguration
from repositories.configurations import PRIMARY_TAKEN_MESSAGE, ConfigurationRegistry


def test_create_applies_defaults(factory) -> None:
    configuration = factory.configuration(name="Albums")
    assert configuration.id is not None
    assert configuration.algorithm_version == 1
    assert configuration.exponent == pytest.approx(3.0)
    assert configuration.bonus_pool_percentage == pytest.approx(3.0)
    assert configuration.min_list_weight == 1
    assert configuration.max_list_dates_penalty_age == 50
    assert configuration.max_list_dates_penalty_percentage == 80
    assert configuration.apply_list_dates_penalty is True
    assert configuration.global_ is True
    assert configuration.primary is False
    assert configuration.published is False


def test_only_one_primary_per_domain(factory) -> None:
    factory.configuration(name="Main", primary=True)

    with pytest.raises(ValidationError) as exc_info:
        factory.configuration(name="Second", primary=True)
    assert exc_info.value.messages_for("primary") == [
        "can only have one primary configuration per type"
    ]

    other_domain = factory.configuration(name="Films", domain=Domain.MOVIES, primary=True)
    assert other_domain.primary is True


def test_updating_the_primary_itself_is_allowed(factory) -> None:
    primary = factory.configuration(name="Main", primary=True)
    factory.registry.update(primary, {"exponent": 2.5})
    assert primary.exponent == pytest.approx(2.5)
    assert primary.primary is True


def test_promoting_a_second_primary_fails_and_leaves_row_untouched(factory) -> None:
    factory.configuration(name="Main", primary=True)
    candidate = factory.configuration(name="Candidate", exponent=2.0)

    with pytest.raises(ValidationError, match="primary"):
        factory.registry.update(candidate, {"primary": True, "exponent": 4.0})
    assert candidate.primary is False
    assert candidate.exponent == pytest.approx(2.0)


def test_database_rejects_a_second_primary_row(factory, session) -> None:
    factory.configuration(name="Main", primary=True)
    session.commit()

    session.add(RankingConfiguration(name="Rogue", domain=Domain.MUSIC_ALBUMS, primary=True))
    with pytest.raises(IntegrityError):
        session.flush()
    session.rollback()

    session.add(RankingConfiguration(name="Other", domain=Domain.MUSIC_ALBUMS, primary=False))
    session.flush()
    primaries = session.scalars(
        select(RankingConfiguration.name).where(RankingConfiguration.primary.is_(True))
    ).all()
    assert primaries == ["Main"]


def test_primary_race_surfaces_as_field_error(factory, session, monkeypatch) -> None:
    factory.configuration(name="Main", primary=True)
    session.commit()

    # Simulate a concurrent transaction that passed the check before "Main" committed.
    monkeypatch.setattr(
        ConfigurationRegistry,
        "_other_primary_exists",
        lambda self, domain, configuration_id: False,
    )
    with pytest.raises(ValidationError) as exc_info:
        factory.configuration(name="Second", primary=True)
    assert exc_info.value.messages_for("primary") == [PRIMARY_TAKEN_MESSAGE]
    assert isinstance(exc_info.value.__cause__, IntegrityError)
    session.rollback()

    assert session.scalars(select(RankingConfiguration.name)).all() == ["Main"]


@pytest.mark.parametrize(
    ("attrs", "field"),
    [
        ({"name": ""}, "name"),
        ({"name": "x" * 256}, "name"),
        ({"algorithm_version": 0}, "algorithm_version"),
        ({"exponent": 0}, "exponent"),
        ({"exponent": 0.001}, "exponent"),
        ({"exponent": 0.004}, "exponent"),
        ({"exponent": 10.5}, "exponent"),
        ({"bonus_pool_percentage": -1}, "bonus_pool_percentage"),
        ({"bonus_pool_percentage": 100.5}, "bonus_pool_percentage"),
        ({"min_list_weight": 1.5}, "min_list_weight"),
        ({"list_limit": 0}, "list_limit"),
        ({"max_list_dates_penalty_age": 0}, "max_list_dates_penalty_age"),
        ({"max_list_dates_penalty_percentage": 101}, "max_list_dates_penalty_percentage"),
    ],
)
def test_out_of_range_fields_are_rejected(factory, attrs: dict, field: str) -> None:
    with pytest.raises(ValidationError) as exc_info:
        factory.configuration(**attrs)
    assert exc_info.value.messages_for(field)


def test_nullable_limits_are_accepted(factory) -> None:
    configuration = factory.configuration(
        list_limit=None,
        max_list_dates_penalty_age=None,
        max_list_dates_penalty_percentage=None,
    )
    assert configuration.list_limit is None


def test_global_and_user_are_mutually_exclusive(factory) -> None:
    with pytest.raises(ValidationError) as exc_info:
        factory.configuration(global_=True, user_id=42)
    assert exc_info.value.messages_for("user_id") == ["global configurations cannot have a user"]

    with pytest.raises(ValidationError) as exc_info:
        factory.configuration(global_=False, user_id=None)
    assert exc_info.value.messages_for("user_id") == [
        "user-specific configurations must have a user"
    ]

    personal = factory.configuration(global_=False, user_id=42)
    assert personal.user_id == 42


def test_inherited_from_must_share_domain(factory) -> None:
    movies = factory.configuration(name="Films", domain=Domain.MOVIES)
    with pytest.raises(ValidationError) as exc_info:
        factory.configuration(name="Albums", inherited_from_id=movies.id)
    assert exc_info.value.messages_for("inherited_from") == ["must be the same type"]


def test_configuration_cannot_inherit_from_itself(factory) -> None:
    configuration = factory.configuration()
    with pytest.raises(ValidationError, match="cannot reference itself"):
        factory.registry.update(configuration, {"inherited_from_id": configuration.id})


def test_domain_cannot_change_after_creation(factory) -> None:
    configuration = factory.configuration()
    with pytest.raises(ValidationError, match="cannot be changed"):
        factory.registry.update(configuration, {"domain": Domain.BOOKS})


def test_unknown_attributes_are_rejected(factory) -> None:
    with pytest.raises(ValidationError, match="is not a configurable attribute"):
        factory.configuration(colour="blue")


def test_clone_copies_tunables_and_resets_primary(factory, session) -> None:
    source = factory.configuration(
        name="Main",
        primary=True,
        exponent=2.0,
        bonus_pool_percentage=5.0,
        list_limit=25,
    )
    clone = factory.registry.clone_for_inheritance(source)

    assert clone.id is None
    assert clone not in session
    assert clone.inherited_from_id == source.id
    assert clone.primary is False
    assert clone.published_at is None
    assert clone.name == "Main"
    assert clone.domain is Domain.MUSIC_ALBUMS
    assert clone.exponent == pytest.approx(2.0)
    assert clone.bonus_pool_percentage == pytest.approx(5.0)
    assert clone.list_limit == 25

    saved = factory.registry.save(clone)
    assert saved.id is not None
    assert saved.inherited is True


def test_copy_penalty_applications_skips_existing_penalties(factory, session) -> None:
    source = factory.configuration(name="Main")
    first = factory.penalty("First")
    second = factory.penalty("Second")
    factory.application(source, first, 10)
    factory.application(source, second, 20)

    target = factory.registry.save(factory.registry.clone_for_inheritance(source))
    factory.application(target, first, 99)

    copied = factory.registry.copy_penalty_applications(source, target)
    assert [(application.penalty_id, application.value) for application in copied] == [
        (second.id, 20)
    ]

    values = {
        application.penalty_id: application.value
        for application in session.query(PenaltyApplication).filter_by(
            ranking_configuration_id=target.id
        )
    }
    assert values == {first.id: 99, second.id: 20}


def test_copy_penalty_applications_requires_saved_target(factory) -> None:
    source = factory.configuration()
    with pytest.raises(ValueError, match="must be saved"):
        factory.registry.copy_penalty_applications(source, RankingConfiguration(name="Draft"))


def test_median_voter_count_over_configuration_lists(factory, session) -> None:
    configuration = factory.configuration()
    for voters in (1, 1, 10, 20, None):
        factory.ranked_list(configuration, factory.list_([1], number_of_voters=voters))

    registry = ConfigurationRegistry(session)
    assert registry.median_voter_count(configuration) == pytest.approx(10.0)
