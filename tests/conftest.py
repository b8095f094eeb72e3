import pytest

from planner.skill_plans import PlanNode, PlanService
from planner.skill_plans.arithmetic import INTELLIGENCE, MEMORY, PERCEPTION, WILLPOWER
from planner.skill_plans.memory import InMemoryCatalog, InMemoryPlanStore

# Skill ids used across the suite
MECHANICS = 3392        # rank 1, no prerequisites
HULL_UPGRADES = 3394    # rank 2, requires Mechanics III
NAVIGATION = 3449       # rank 1, no prerequisites, PER/WIL
EVASIVE = 3453          # rank 2, requires Navigation II
UNTIMED = 9999          # no attribute data

ENGINEERING_GROUP = 269
NAVIGATION_GROUP = 275


def nodes(entries):
    return [(e.skill_id, e.level) for e in entries]


def kinds(entries):
    return [(e.skill_id, e.level, e.kind.value) for e in entries]


@pytest.fixture
def catalog():
    catalog = InMemoryCatalog()
    catalog.add_group(ENGINEERING_GROUP, 'Engineering')
    catalog.add_group(NAVIGATION_GROUP, 'Navigation')
    catalog.add_skill(MECHANICS, rank=1, primary=INTELLIGENCE, secondary=MEMORY,
                      name='Mechanics', group_id=ENGINEERING_GROUP)
    catalog.add_skill(HULL_UPGRADES, rank=2, primary=INTELLIGENCE, secondary=MEMORY,
                      name='Hull Upgrades', group_id=ENGINEERING_GROUP,
                      prerequisites=[(MECHANICS, 3)])
    catalog.add_skill(NAVIGATION, rank=1, primary=PERCEPTION, secondary=WILLPOWER,
                      name='Navigation', group_id=NAVIGATION_GROUP)
    catalog.add_skill(EVASIVE, rank=2, primary=PERCEPTION, secondary=WILLPOWER,
                      name='Evasive Maneuvering', group_id=NAVIGATION_GROUP,
                      prerequisites=[(NAVIGATION, 2)])
    catalog.add_skill(UNTIMED, rank=1, name='Untimed Skill')
    return catalog


@pytest.fixture
def store():
    return InMemoryPlanStore()


@pytest.fixture
def service(store, catalog):
    return PlanService(store, catalog)


@pytest.fixture
def plan_id(service):
    return service.create_plan('Test Plan')


@pytest.fixture
def hull_plan(service, plan_id):
    """Hull Upgrades I added to an empty plan."""
    service.add_entry(plan_id, HULL_UPGRADES, 1)
    return plan_id


@pytest.fixture
def hull_nodes():
    return [
        PlanNode(MECHANICS, 1),
        PlanNode(MECHANICS, 2),
        PlanNode(MECHANICS, 3),
        PlanNode(HULL_UPGRADES, 1),
    ]


RIFTER = 587  # an item type that is not a skill
CHARACTER_ID = 90000001


@pytest.fixture
def sde(db):
    """SDE rows for Mechanics, Hull Upgrades, Navigation and one non-skill type."""
    from planner.eve.models import ItemGroup, ItemType, TypeAttribute
    from planner.stores import ATTR_PRIMARY, ATTR_RANK, ATTR_SECONDARY

    ItemGroup.objects.create(id=ENGINEERING_GROUP, name='Engineering', category_id=16)
    ItemGroup.objects.create(id=NAVIGATION_GROUP, name='Navigation', category_id=16)
    ItemGroup.objects.create(id=25, name='Frigate', category_id=6)
    ItemType.objects.create(id=MECHANICS, name='Mechanics', group_id=ENGINEERING_GROUP)
    ItemType.objects.create(id=HULL_UPGRADES, name='Hull Upgrades', group_id=ENGINEERING_GROUP)
    ItemType.objects.create(id=NAVIGATION, name='Navigation', group_id=NAVIGATION_GROUP)
    ItemType.objects.create(id=RIFTER, name='Rifter', group_id=25)

    rows = [
        (MECHANICS, ATTR_RANK, 1.0), (MECHANICS, ATTR_PRIMARY, INTELLIGENCE), (MECHANICS, ATTR_SECONDARY, MEMORY),
        (HULL_UPGRADES, ATTR_RANK, 2.0), (HULL_UPGRADES, ATTR_PRIMARY, INTELLIGENCE),
        (HULL_UPGRADES, ATTR_SECONDARY, MEMORY), (HULL_UPGRADES, 182, MECHANICS), (HULL_UPGRADES, 277, 3),
        (NAVIGATION, ATTR_RANK, 1.0), (NAVIGATION, ATTR_PRIMARY, PERCEPTION), (NAVIGATION, ATTR_SECONDARY, WILLPOWER),
        (RIFTER, 4, 1067000.0),
    ]
    for type_id, attribute_id, value in rows:
        if isinstance(value, float):
            TypeAttribute.objects.create(type_id=type_id, attribute_id=attribute_id, value_float=value)
        else:
            TypeAttribute.objects.create(type_id=type_id, attribute_id=attribute_id, value_int=value)


@pytest.fixture
def character(db):
    from planner.models import Character, CharacterAttributes, CharacterImplant, CharacterSkill
    from planner.eve.models import ItemType, TypeAttribute

    pilot = Character.objects.create(id=CHARACTER_ID, name='Test Pilot')
    CharacterSkill.objects.create(character=pilot, skill_id=MECHANICS, skill_level=2,
                                  trained_skill_level=3, skillpoints_in_skill=8000)
    CharacterAttributes.objects.create(character=pilot, intelligence=27, memory=21, perception=20,
                                       willpower=17, charisma=17)
    # Ocular Filter - Basic: +3 perception
    ItemType.objects.create(id=9899, name='Ocular Filter - Basic', group_id=300)
    TypeAttribute.objects.create(type_id=9899, attribute_id=178, value_float=3.0)
    CharacterImplant.objects.create(character=pilot, type_id=9899)
    return pilot
