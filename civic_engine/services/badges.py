"""
Static badge catalogue.

Every badge is "N issues in the history satisfy a predicate". Badges are
evaluated independently; one submission can earn several at once.
"""
import re
from typing import Dict, List, Optional

from civic_engine.models.domain import Badge, Issue
from civic_engine.models.enums import BadgeType, IssueCategory, IssuePriority

IMAGE_ROOT = "/images/badges"


def _any_issue(issue: Issue) -> bool:
    return True


def _has_attachment(issue: Issue) -> bool:
    return issue.has_attachments


def _is_critical(issue: Issue) -> bool:
    return issue.priority == IssuePriority.CRITICAL


def _in_categories(*categories: IssueCategory):
    wanted = frozenset(categories)

    def predicate(issue: Issue) -> bool:
        return issue.category in wanted
    return predicate


def _humanize(category: IssueCategory) -> str:
    """'ParksAndRecreation' -> 'Parks And Recreation'."""
    return re.sub(r"(?<!^)(?=[A-Z])", " ", category.value)


def category_specialist_id(category: IssueCategory) -> str:
    return f"{BadgeType.CATEGORY_SPECIALIST.value}:{category.value}"


def _category_specialist(category: IssueCategory) -> Badge:
    label = _humanize(category)
    return Badge(
        id=category_specialist_id(category),
        name=f"{label} Specialist",
        description=f"Reported 2 or more {label.lower()} issues",
        badge_type=BadgeType.CATEGORY_SPECIALIST,
        image_path=f"{IMAGE_ROOT}/specialist_{category.value.lower()}.png",
        required_count=2,
        points_value=30,
        qualifies=_in_categories(category),
        required_categories=(category,),
    )


def _build_catalogue() -> List[Badge]:
    badges = [
        Badge(
            id="FirstReport",
            name="First Responder",
            description="Submitted your first municipal issue report",
            badge_type=BadgeType.FIRST_REPORT,
            image_path=f"{IMAGE_ROOT}/first_responder.png",
            required_count=1,
            points_value=25,
            qualifies=_any_issue,
        ),
        Badge(
            id="CommunityHelper",
            name="Community Helper",
            description="Reported 3 or more municipal issues",
            badge_type=BadgeType.COMMUNITY_HELPER,
            image_path=f"{IMAGE_ROOT}/community_helper.png",
            required_count=3,
            points_value=50,
            qualifies=_any_issue,
        ),
        Badge(
            id="ConsistentReporter",
            name="Consistent Reporter",
            description="Reported 5 or more municipal issues",
            badge_type=BadgeType.CONSISTENT_REPORTER,
            image_path=f"{IMAGE_ROOT}/consistent_reporter.png",
            required_count=5,
            points_value=100,
            qualifies=_any_issue,
        ),
        Badge(
            id="CommunityChampion",
            name="Community Champion",
            description="Reported 10 or more municipal issues",
            badge_type=BadgeType.COMMUNITY_CHAMPION,
            image_path=f"{IMAGE_ROOT}/community_champion.png",
            required_count=10,
            points_value=200,
            qualifies=_any_issue,
        ),
        Badge(
            id="MediaContributor",
            name="Media Contributor",
            description="Attached a photo or document to a report",
            badge_type=BadgeType.MEDIA_CONTRIBUTOR,
            image_path=f"{IMAGE_ROOT}/media_contributor.png",
            required_count=1,
            points_value=40,
            qualifies=_has_attachment,
        ),
        Badge(
            id="EmergencyResponder",
            name="Emergency Responder",
            description="Reported a critical priority issue",
            badge_type=BadgeType.EMERGENCY_RESPONDER,
            image_path=f"{IMAGE_ROOT}/emergency_responder.png",
            required_count=1,
            points_value=75,
            qualifies=_is_critical,
        ),
    ]

    badges.extend(_category_specialist(category) for category in IssueCategory)

    badges.extend([
        Badge(
            id="WaterSaver",
            name="Water Saver",
            description="Reported 3 or more water supply issues",
            badge_type=BadgeType.CATEGORY_SPECIALIST,
            image_path=f"{IMAGE_ROOT}/water_saver.png",
            required_count=3,
            points_value=60,
            qualifies=_in_categories(IssueCategory.WATER_SUPPLY),
            required_categories=(IssueCategory.WATER_SUPPLY,),
        ),
        Badge(
            id="PowerSaver",
            name="Power Saver",
            description="Reported 3 or more electricity issues",
            badge_type=BadgeType.CATEGORY_SPECIALIST,
            image_path=f"{IMAGE_ROOT}/power_saver.png",
            required_count=3,
            points_value=60,
            qualifies=_in_categories(IssueCategory.ELECTRICITY),
            required_categories=(IssueCategory.ELECTRICITY,),
        ),
        Badge(
            id="RoadWarrior",
            name="Road Warrior",
            description="Reported 3 or more roads and infrastructure issues",
            badge_type=BadgeType.CATEGORY_SPECIALIST,
            image_path=f"{IMAGE_ROOT}/road_warrior.png",
            required_count=3,
            points_value=60,
            qualifies=_in_categories(IssueCategory.ROADS),
            required_categories=(IssueCategory.ROADS,),
        ),
        Badge(
            id="EcoGuardian",
            name="Eco Guardian",
            description="Reported 3 or more environmental issues",
            badge_type=BadgeType.CATEGORY_SPECIALIST,
            image_path=f"{IMAGE_ROOT}/eco_guardian.png",
            required_count=3,
            points_value=70,
            qualifies=_in_categories(IssueCategory.WASTE_MANAGEMENT, IssueCategory.PARKS_AND_RECREATION),
            required_categories=(IssueCategory.WASTE_MANAGEMENT, IssueCategory.PARKS_AND_RECREATION),
        ),
    ])
    return badges


BADGE_CATALOGUE: List[Badge] = _build_catalogue()
BADGES_BY_ID: Dict[str, Badge] = {badge.id: badge for badge in BADGE_CATALOGUE}


def get_badge(badge_id: str) -> Optional[Badge]:
    return BADGES_BY_ID.get(badge_id)


def all_badges() -> List[Badge]:
    return list(BADGE_CATALOGUE)


def badges_of_type(badge_type: BadgeType) -> List[Badge]:
    return [badge for badge in BADGE_CATALOGUE if badge.badge_type == badge_type]


def badges_for_category(category: IssueCategory) -> List[Badge]:
    return [badge for badge in BADGE_CATALOGUE if category in badge.required_categories]
