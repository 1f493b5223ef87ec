import pytest

from trainerhub.config.settings import SearchSettings, Settings, get_settings
from trainerhub.domain.errors import NotFoundError, ValidationError
from trainerhub.domain.models import LocationType, TrainerStatus
from trainerhub.matching.matcher import TargetLocation
from trainerhub.matching.search import resolve_location, search_trainers

BERLIN = (52.5200, 13.4050)
POTSDAM = (52.3906, 13.0645)
MUNICH = (48.1351, 11.5820)


@pytest.fixture
def trainers(db, make):
    near = make.trainer(
        first_name="Nora",
        topics=["Python", "Data Science"],
        country_code="DE",
        daily_rate=800.0,
        latitude=POTSDAM[0],
        longitude=POTSDAM[1],
        travel_radius_km=50.0,
        delivery_types=["ON_SITE"],
    )
    far = make.trainer(
        first_name="Fritz",
        topics=["Python"],
        country_code="DE",
        daily_rate=1200.0,
        latitude=MUNICH[0],
        longitude=MUNICH[1],
        travel_radius_km=100.0,
        delivery_types=["ONLINE", "ON_SITE"],
    )
    unknown = make.trainer(first_name="Uwe", topics=["Java"], country_code="AT", daily_rate=600.0)
    make.trainer(first_name="Ina", topics=["Python"], status=TrainerStatus.INACTIVE)
    db.commit()
    return near, far, unknown


def _search(db, **kw):
    return search_trainers(db, settings=get_settings(), **kw)


def test_only_active_trainers_are_listed(db, trainers):
    result = _search(db)
    assert {t.first_name for t in result.trainers} == {"Nora", "Fritz", "Uwe"}
    assert result.pagination.total_count == 3
    assert all(t.distance_info is None and t.is_match is None for t in result.trainers)


def test_topic_filters(db, trainers):
    assert {t.first_name for t in _search(db, topic="pyth").trainers} == {"Nora", "Fritz"}
    assert {t.first_name for t in _search(db, topic_exact="data science").trainers} == {"Nora"}
    assert _search(db, topic_exact="data").trainers == []


def test_country_and_price_filters(db, trainers):
    assert {t.first_name for t in _search(db, country="at").trainers} == {"Uwe"}
    assert {t.first_name for t in _search(db, min_price=700, max_price=1000).trainers} == {"Nora"}
    with pytest.raises(ValidationError):
        _search(db, min_price=1000, max_price=700)


def test_physical_location_keeps_near_misses_and_ranks_matches_first(db, trainers):
    location = TargetLocation(type=LocationType.PHYSICAL, lat=BERLIN[0], lon=BERLIN[1])
    result = _search(db, location=location)

    names = [t.first_name for t in result.trainers]
    assert names[0] == "Nora"
    assert set(names) == {"Nora", "Fritz", "Uwe"}

    by_name = {t.first_name: t for t in result.trainers}
    assert by_name["Nora"].distance_info.is_within_radius is True
    assert by_name["Nora"].is_match is True
    assert by_name["Fritz"].distance_info.is_within_radius is False
    assert by_name["Fritz"].distance_info.distance > 400
    assert by_name["Uwe"].distance_info.is_within_radius is False
    assert by_name["Uwe"].distance_info.distance is None
    assert names.index("Fritz") < names.index("Uwe")


def test_online_location_reports_capability(db, trainers):
    result = _search(db, location=TargetLocation(type=LocationType.ONLINE))
    by_name = {t.first_name: t for t in result.trainers}
    assert by_name["Fritz"].online_training_info.offers_online is True
    assert by_name["Nora"].online_training_info.offers_online is False
    assert all(t.distance_info is None for t in result.trainers)
    assert result.trainers[0].first_name == "Fritz"


def test_unranked_search_keeps_newest_first(db, trainers):
    settings = Settings(search=SearchSettings(rank_matches_first=False))
    location = TargetLocation(type=LocationType.PHYSICAL, lat=BERLIN[0], lon=BERLIN[1])
    result = search_trainers(db, settings=settings, location=location)
    assert [t.first_name for t in result.trainers] == ["Uwe", "Fritz", "Nora"]
    assert result.trainers[2].is_match is True


def test_pagination(db, trainers):
    first = _search(db, page=1, limit=2)
    second = _search(db, page=2, limit=2)
    assert len(first.trainers) == 2
    assert len(second.trainers) == 1
    assert first.pagination.total_pages == 2
    assert not {t.id for t in first.trainers} & {t.id for t in second.trainers}

    with pytest.raises(ValidationError):
        _search(db, page=0)
    with pytest.raises(ValidationError):
        _search(db, limit=get_settings().search.max_page_size + 1)


def test_resolve_location_from_training(db, make):
    company = make.company()
    loc = make.location(latitude=BERLIN[0], longitude=BERLIN[1])
    training = make.training(company, location_id=loc.id)
    bare = make.training(company)
    db.commit()

    target = resolve_location(db, training_id=training.id)
    assert target == TargetLocation(type=LocationType.PHYSICAL, lat=BERLIN[0], lon=BERLIN[1])
    assert resolve_location(db, location_id=loc.id) == target

    with pytest.raises(ValidationError):
        resolve_location(db, training_id=bare.id)
    with pytest.raises(NotFoundError):
        resolve_location(db, training_id=9999)
    with pytest.raises(NotFoundError):
        resolve_location(db, location_id=9999)


def test_resolve_ad_hoc_location(db):
    assert resolve_location(db) is None
    assert resolve_location(db, location_type=LocationType.ONLINE).type is LocationType.ONLINE
    with pytest.raises(ValidationError):
        resolve_location(db, location_type=LocationType.PHYSICAL, lat=52.5)
    with pytest.raises(ValidationError):
        resolve_location(db, lat=52.5, lon=13.4)
