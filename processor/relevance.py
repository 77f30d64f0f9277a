"""Relevance scoring for imported events."""
import copy
import logging
from typing import Callable, Dict, List, Optional

from processor.models import RawEvent

logger = logging.getLogger(__name__)

DEFAULT_TECH_CATEGORIES: Dict[str, List[str]] = {
    'Web Development': ['html', 'css', 'javascript', 'php', 'wordpress', 'drupal', 'laravel', 'react',
                        'angular', 'vue', 'node.js', 'front-end', 'back-end', 'full-stack', 'web'],
    'Mobile Development': ['android', 'ios', 'swift', 'kotlin', 'react native', 'flutter', 'mobile app',
                           'mobile development'],
    'DevOps': ['devops', 'docker', 'kubernetes', 'aws', 'azure', 'cloud', 'ci/cd', 'jenkins', 'terraform',
               'ansible', 'infrastructure'],
    'Data Science': ['data science', 'machine learning', 'ai', 'artificial intelligence', 'big data',
                     'analytics', 'data mining', 'data visualization', 'statistics'],
    'Security': ['security', 'cybersecurity', 'infosec', 'hacking', 'penetration testing', 'encryption',
                 'firewall', 'compliance'],
    'Blockchain': ['blockchain', 'cryptocurrency', 'bitcoin', 'ethereum', 'smart contracts', 'web3', 'nft'],
    'UI/UX Design': ['ui', 'ux', 'user interface', 'user experience', 'design', 'wireframe', 'prototype',
                     'figma', 'sketch'],
    'Project Management': ['agile', 'scrum', 'kanban', 'project management', 'product management', 'pm',
                           'pmo'],
    'Database': ['sql', 'nosql', 'database', 'mongodb', 'postgresql', 'mysql', 'oracle', 'sql server',
                 'redis'],
    'QA & Testing': ['qa', 'testing', 'quality assurance', 'test automation', 'selenium', 'cypress', 'jest',
                     'unit test'],
    'IoT': ['iot', 'internet of things', 'embedded systems', 'arduino', 'raspberry pi', 'sensors'],
    'AR/VR': ['ar', 'vr', 'augmented reality', 'virtual reality', 'metaverse', 'unity', 'unreal'],
    'Networking': ['networking', 'network', 'cisco', 'router', 'switch', 'firewall', 'vpn', 'dns'],
    'Languages & Frameworks': ['python', 'java', 'c#', '.net', 'ruby', 'go', 'rust', 'scala', 'typescript'],
}

TECH_EVENT_TERMS = ['hackathon', 'meetup', 'conference', 'workshop', 'webinar', 'tech', 'software', 'developer',
                    'coding', 'programming', 'startup']

LOCALITY_TERMS = ['sacramento', 'sac', 'folsom', 'roseville', 'rocklin', 'davis', 'elk grove', 'rancho cordova',
                  'citrus heights', 'natomas', 'west sac', 'downtown']

TITLE_TERM_BOOST = 15
LOCALITY_BOOST = 15

# (minimum exclusive keyword count, bonus), highest band first
KEYWORD_BANDS = [(10, 50), (5, 40), (2, 30), (0, 20)]

LEGACY_BASE_SCORE = 50
LEGACY_TITLE_WEIGHT = 5
LEGACY_DESCRIPTION_WEIGHT = 2
LEGACY_LOCATION_BOOST = 10

# Matched case-sensitively against lowercased text, so 'DevOps', 'UX' and
# 'UI' never match.
LEGACY_TECH_KEYWORDS = [
    'tech', 'technology', 'developer', 'programming', 'code', 'software', 'web', 'mobile', 'data', 'cloud',
    'ai', 'machine learning', 'artificial intelligence', 'startup', 'cyber', 'security', 'blockchain',
    'DevOps', 'UX', 'UI', 'design', 'agile', 'scrum', 'javascript', 'python', 'java', 'php', 'ruby', 'html',
    'css', 'react', 'angular', 'vue', 'node', 'database', 'api', 'aws', 'azure', 'google cloud', 'iot',
    'internet of things', 'hackathon', 'workshop', 'meetup', 'conference', 'seminar', 'networking',
]

LEGACY_LOCATIONS = ['sacramento', 'sac', 'davis', 'folsom', 'rocklin', 'roseville', 'elk grove', 'rancho cordova',
                    'citrus heights', 'west sacramento', 'woodland', 'auburn', 'placerville', 'downtown',
                    'midtown', 'natomas']

ScoreAdjuster = Callable[[int, RawEvent], int]
CategoryTransform = Callable[[Dict[str, List[str]]], Dict[str, List[str]]]

CATEGORIES_SETTING = 'tech_categories'


def clamp_score(score: int) -> int:
    return max(0, min(100, int(score)))


def event_content(event: RawEvent) -> str:
    """Lowercase title and description joined by a space."""
    return f"{event.title} {event.description or ''}".lower()


class CategoryMap:
    """Category name to keyword mapping used for scoring and tagging."""

    def __init__(
        self,
        categories: Dict[str, List[str]] = None,
        store=None,
        transform: Optional[CategoryTransform] = None
    ):
        """
        Initialize the map.

        Args:
            categories: Category to keywords mapping; defaults to the
                built-in tech categories
            store: Optional settings store used to persist updates
            transform: Optional callback applied to the mapping on load and
                on update, letting host code add or remove categories
        """
        self.store = store
        self.transform = transform
        if categories is None:
            categories = copy.deepcopy(DEFAULT_TECH_CATEGORIES)
        self.categories = self._apply_transform(categories)
        logger.debug(f"Tech categories initialized with {len(self.categories)} categories")

    @classmethod
    def from_store(cls, store, transform: Optional[CategoryTransform] = None) -> 'CategoryMap':
        """Load the mapping from a settings store, falling back to defaults."""
        categories = store.get(CATEGORIES_SETTING, None) or None
        return cls(categories, store=store, transform=transform)

    def all_keywords(self) -> List[str]:
        """Distinct lowercase keywords across all categories, in first-seen order."""
        keywords = []
        seen = set()
        for category_keywords in self.categories.values():
            for keyword in category_keywords:
                keyword = keyword.lower()
                if keyword and keyword not in seen:
                    seen.add(keyword)
                    keywords.append(keyword)
        return keywords

    def detect_categories(self, content: str) -> List[str]:
        """
        Categories with at least one keyword present in the content.

        Args:
            content: Text to analyze

        Returns:
            Category names in mapping order
        """
        content = content.lower()
        detected = [
            category for category, keywords in self.categories.items()
            if any(keyword.lower() in content for keyword in keywords if keyword)
        ]
        logger.debug(f"Detected {len(detected)} tech categories for content")
        return detected

    def update(self, categories: Dict[str, List[str]]) -> bool:
        """
        Replace the mapping and persist it.

        Returns:
            True on success
        """
        if not isinstance(categories, dict):
            return False

        if self.store is not None and not self.store.set(CATEGORIES_SETTING, categories):
            logger.error('Failed to update tech categories')
            return False

        self.categories = self._apply_transform(categories)
        logger.info('Tech categories updated successfully')
        return True

    def _apply_transform(self, categories: Dict[str, List[str]]) -> Dict[str, List[str]]:
        if self.transform is None:
            return categories
        return self.transform(categories)


class RelevanceScorer:
    """Per-category keyword scoring with title and locality boosts."""

    def __init__(self, category_map: CategoryMap, adjust: Optional[ScoreAdjuster] = None):
        """
        Initialize the scorer.

        Args:
            category_map: Keyword configuration
            adjust: Optional callback receiving (score, event) before
                clamping and returning the adjusted score
        """
        self.category_map = category_map
        self.adjust = adjust

    def score(self, event: RawEvent) -> int:
        """
        Calculate the relevance score of an event.

        Args:
            event: Event to score

        Returns:
            Score from 0 to 100
        """
        score = 0
        content = event_content(event)

        keyword_count = sum(1 for keyword in self.category_map.all_keywords() if keyword in content)
        for threshold, bonus in KEYWORD_BANDS:
            if keyword_count > threshold:
                score += bonus
                break

        title = event.title.lower()
        if any(term in title for term in TECH_EVENT_TERMS):
            score += TITLE_TERM_BOOST

        if any(term in content for term in LOCALITY_TERMS):
            score += LOCALITY_BOOST

        if self.adjust is not None:
            score = self.adjust(score, event)

        final_score = clamp_score(score)

        if keyword_count > 0:
            logger.debug(
                f"Event \"{event.title}\" scored {final_score} with {keyword_count} tech keywords found"
            )

        return final_score


def legacy_relevance_score(event: RawEvent) -> int:
    """
    Flat keyword score used by the import run.

    Starts at 50, adds 5 per keyword in the title and 2 per keyword in the
    description, and 10 once when the location names a local area.

    Args:
        event: Event to score

    Returns:
        Score from 0 to 100
    """
    score = LEGACY_BASE_SCORE
    title = event.title.lower()
    description = (event.description or '').lower()

    for keyword in LEGACY_TECH_KEYWORDS:
        if keyword in title:
            score += LEGACY_TITLE_WEIGHT
        if keyword in description:
            score += LEGACY_DESCRIPTION_WEIGHT

    location = (event.location or '').lower()
    if any(term in location for term in LEGACY_LOCATIONS):
        score += LEGACY_LOCATION_BOOST

    return clamp_score(score)
