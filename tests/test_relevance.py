"""Unit tests for relevance scoring and the category map."""
from datetime import datetime
from unittest.mock import Mock

import pytest

from processor.models import RawEvent
from processor.relevance import (
    CATEGORIES_SETTING,
    DEFAULT_TECH_CATEGORIES,
    CategoryMap,
    RelevanceScorer,
    clamp_score,
    legacy_relevance_score,
)


def _event(title, description='', location=''):
    return RawEvent(
        title=title,
        description=description,
        location=location,
        start_date=datetime(2030, 3, 15, 18, 0)
    )


@pytest.fixture
def scorer():
    """Scorer over the built-in categories."""
    return RelevanceScorer(CategoryMap())


@pytest.fixture
def python_meetup_event():
    return _event(
        'Sacramento Python Meetup',
        'Join us to learn Django and Flask',
        'Midtown Sacramento'
    )


class TestCategoryMap:
    """Test cases for CategoryMap class."""

    def test_defaults(self):
        """Test the built-in categories are used when none are given."""
        category_map = CategoryMap()

        assert category_map.categories == DEFAULT_TECH_CATEGORIES
        assert category_map.categories is not DEFAULT_TECH_CATEGORIES

    def test_all_keywords_are_distinct(self):
        """Test keywords shared by categories are listed once."""
        category_map = CategoryMap({'A': ['Firewall', 'vpn'], 'B': ['firewall', 'sql']})

        assert category_map.all_keywords() == ['firewall', 'vpn', 'sql']

    def test_detect_categories(self):
        """Test categories are detected in mapping order."""
        category_map = CategoryMap()

        detected = category_map.detect_categories('Docker and Python workshop')

        assert detected == ['DevOps', 'Languages & Frameworks']

    def test_detect_categories_none(self):
        """Test content without keywords has no categories."""
        category_map = CategoryMap({'Database': ['sql', 'redis']})

        assert category_map.detect_categories('Knitting circle') == []

    def test_transform_applied_on_load(self):
        """Test the transform callback can add categories."""
        def add_quantum(categories):
            return dict(categories, Quantum=['qubit'])

        category_map = CategoryMap({'Database': ['sql']}, transform=add_quantum)

        assert category_map.detect_categories('Qubit basics') == ['Quantum']

    def test_update_persists(self):
        """Test updates are written to the store."""
        store = Mock()
        store.set.return_value = True
        category_map = CategoryMap(store=store)

        assert category_map.update({'Database': ['sql']}) is True

        store.set.assert_called_once_with(CATEGORIES_SETTING, {'Database': ['sql']})
        assert category_map.categories == {'Database': ['sql']}

    def test_update_failure_keeps_mapping(self):
        """Test a failed write leaves the mapping unchanged."""
        store = Mock()
        store.set.return_value = False
        category_map = CategoryMap({'Database': ['sql']}, store=store)

        assert category_map.update({'IoT': ['iot']}) is False
        assert category_map.categories == {'Database': ['sql']}

    def test_update_rejects_non_mapping(self):
        """Test non-dict updates are refused."""
        assert CategoryMap().update(['sql']) is False

    def test_from_store_falls_back_to_defaults(self):
        """Test an absent stored mapping yields the defaults."""
        store = Mock()
        store.get.return_value = None

        category_map = CategoryMap.from_store(store)

        assert category_map.categories == DEFAULT_TECH_CATEGORIES
        store.get.assert_called_once_with(CATEGORIES_SETTING, None)

    def test_from_store_uses_stored_mapping(self):
        """Test a stored mapping replaces the defaults."""
        store = Mock()
        store.get.return_value = {'Database': ['sql']}

        assert CategoryMap.from_store(store).categories == {'Database': ['sql']}


class TestRelevanceScorer:
    """Test cases for RelevanceScorer class."""

    def test_python_meetup_scores_above_default_minimum(self, scorer, python_meetup_event):
        """Test a local Python meetup clears the default minimum."""
        # python, go (django) and ar (learn) give the 30 band, plus title and locality boosts
        assert scorer.score(python_meetup_event) == 60

    @pytest.mark.parametrize('keywords,expected', [
        ([], 0),
        (['sql'], 20),
        (['sql', 'redis'], 20),
        (['sql', 'redis', 'mongodb'], 30),
        (['sql', 'redis', 'mongodb', 'mysql', 'oracle'], 30),
        (['sql', 'redis', 'mongodb', 'mysql', 'oracle', 'postgresql'], 40),
        (['k1', 'k2', 'k3', 'k4', 'k5', 'k6', 'k7', 'k8', 'k9', 'k10'], 40),
        (['k1', 'k2', 'k3', 'k4', 'k5', 'k6', 'k7', 'k8', 'k9', 'k10', 'k11'], 50),
    ])
    def test_keyword_bands(self, keywords, expected):
        """Test the keyword count bands."""
        category_map = CategoryMap({'Test': ['sql', 'redis', 'mongodb', 'mysql', 'oracle', 'postgresql'] +
                                    [f"k{index}" for index in range(1, 12)]})
        scorer = RelevanceScorer(category_map)

        event = _event('Gathering', ' '.join(f"[{keyword}]" for keyword in keywords))

        assert scorer.score(event) == expected

    def test_title_term_boost(self):
        """Test event-type terms in the title add 15."""
        scorer = RelevanceScorer(CategoryMap({'Test': ['zzz']}))

        assert scorer.score(_event('Spring Hackathon')) == 15
        assert scorer.score(_event('Spring Gathering', 'a hackathon')) == 0

    def test_locality_boost(self):
        """Test a local place anywhere in title or description adds 15."""
        scorer = RelevanceScorer(CategoryMap({'Test': ['zzz']}))

        assert scorer.score(_event('Gathering', 'held in Folsom')) == 15
        assert scorer.score(_event('Gathering', 'held in Reno')) == 0

    def test_adjust_callback_and_clamp(self):
        """Test the adjust callback runs before clamping."""
        category_map = CategoryMap({'Test': ['zzz']})

        high = RelevanceScorer(category_map, adjust=lambda score, event: score + 500)
        low = RelevanceScorer(category_map, adjust=lambda score, event: score - 500)

        assert high.score(_event('Gathering')) == 100
        assert low.score(_event('Gathering')) == 0


class TestLegacyRelevanceScore:
    """Test cases for the flat keyword score."""

    def test_python_meetup(self, python_meetup_event):
        """Test base, title keywords and location boost."""
        # 50 + python/meetup in title (2 x 5) + Sacramento location
        assert legacy_relevance_score(python_meetup_event) == 70

    def test_no_keywords_is_base_score(self):
        """Test an unrelated event keeps the base score."""
        assert legacy_relevance_score(_event('Garden party', 'Flowers', 'Reno')) == 50

    def test_description_keywords_weighted_lower(self):
        """Test description keywords add 2 each."""
        assert legacy_relevance_score(_event('Garden party', 'python and php')) == 54

    def test_mixed_case_keywords_never_match(self):
        """Test the mixed-case entries are compared against lowercased text."""
        assert legacy_relevance_score(_event('ux devops ui', 'ux devops ui')) == 50

    def test_capped_at_100(self):
        """Test the score never exceeds 100."""
        title = 'python javascript react angular vue node php ruby html css hackathon workshop'
        assert legacy_relevance_score(_event(title, title, 'Davis')) == 100


@pytest.mark.parametrize('raw,expected', [(-5, 0), (0, 0), (55, 55), (100, 100), (140, 100)])
def test_clamp_score(raw, expected):
    """Test scores are clamped to 0..100."""
    assert clamp_score(raw) == expected
