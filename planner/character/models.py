"""
Character and skill plan models.

Character data (skills, attributes, implants) is cached from ESI by an
external sync; the planner only reads it. Skill plans are owned by the
planner and written through planner.stores.DatabasePlanStore.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class CharacterSkill(models.Model):
    """
    A trained skill for a character.

    From ESI: GET /characters/{character_id}/skills/
    """

    character = models.ForeignKey(
        'planner.Character',
        on_delete=models.CASCADE,
        related_name='skills'
    )
    skill_id = models.IntegerField(db_index=True)  # FK to ItemType
    skill_level = models.SmallIntegerField(default=0)  # active level, 0-5
    skillpoints_in_skill = models.IntegerField(default=0)
    trained_skill_level = models.SmallIntegerField(default=0)  # 0-5

    # Cache metadata
    synced_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _('character skill')
        verbose_name_plural = _('character skills')
        unique_together = [['character', 'skill_id']]
        ordering = ['skill_id']

    def __str__(self) -> str:
        return f"{self.character.name}: Skill {self.skill_id} -> L{self.trained_skill_level}"


class CharacterAttributes(models.Model):
    """
    Character attributes (affect skill training speed).

    From ESI: GET /characters/{character_id}/attributes/

    Values are effective: base 17 + remap + implants.
    """

    character = models.OneToOneField(
        'planner.Character',
        on_delete=models.CASCADE,
        related_name='attributes'
    )

    intelligence = models.SmallIntegerField(default=17)
    perception = models.SmallIntegerField(default=17)
    charisma = models.SmallIntegerField(default=17)
    willpower = models.SmallIntegerField(default=17)
    memory = models.SmallIntegerField(default=17)

    bonus_remap_available = models.IntegerField(default=0)

    # Cache metadata
    synced_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _('character attributes')
        verbose_name_plural = _('character attributes')

    def __str__(self) -> str:
        return f"{self.character.name} Attributes"


class CharacterImplant(models.Model):
    """
    An implant installed in a character.

    From ESI: GET /characters/{character_id}/implants/

    Attribute bonuses are read from the implant type's dogma attributes.
    """

    character = models.ForeignKey(
        'planner.Character',
        on_delete=models.CASCADE,
        related_name='implants'
    )
    type_id = models.IntegerField(db_index=True)  # FK to ItemType

    # Cache metadata
    synced_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _('character implant')
        verbose_name_plural = _('character implants')
        unique_together = [['character', 'type_id']]
        ordering = ['character', 'type_id']

    def __str__(self) -> str:
        return f"{self.character.name}: Implant {self.type_id}"


class SkillPlan(models.Model):
    """
    A skill plan - an ordered, prerequisite-closed list of (skill, level) entries.

    A plan is destroyed as a unit; entries and remaps cascade.
    """

    name = models.CharField(max_length=255, db_index=True)
    description = models.TextField(blank=True, null=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('skill plan')
        verbose_name_plural = _('skill plans')
        ordering = ['name', 'id']

    def __str__(self) -> str:
        return self.name


class SkillPlanEntry(models.Model):
    """
    One (skill, level) of a skill plan.

    Two taxa of entries:
    - Planned: requested by the user
    - Prerequisite: added by the planner to satisfy requirements
    """

    class EntryType(models.TextChoices):
        PLANNED = 'Planned', _('Planned')
        PREREQUISITE = 'Prerequisite', _('Prerequisite')

    skill_plan = models.ForeignKey(
        SkillPlan,
        on_delete=models.CASCADE,
        related_name='entries'
    )

    skill_id = models.IntegerField(db_index=True)  # FK to ItemType
    level = models.SmallIntegerField()  # 1-5

    entry_type = models.CharField(
        max_length=20,
        choices=EntryType.choices,
        default=EntryType.PLANNED,
        db_index=True,
    )
    notes = models.TextField(blank=True, null=True)

    # Training order within the plan
    display_order = models.IntegerField(default=0)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('skill plan entry')
        verbose_name_plural = _('skill plan entries')
        ordering = ['skill_plan', 'display_order', 'id']
        unique_together = [['skill_plan', 'skill_id', 'level']]

    def __str__(self) -> str:
        return f"{self.skill_plan.name}: Skill {self.skill_id} -> L{self.level} ({self.entry_type})"


class SkillPlanRemap(models.Model):
    """
    A stored attribute remap of a plan, taken after the anchor entry.

    A null anchor means the remap is taken before the first entry.
    """

    skill_plan = models.ForeignKey(
        SkillPlan,
        on_delete=models.CASCADE,
        related_name='remaps'
    )
    after_skill_id = models.IntegerField(null=True, blank=True)
    after_level = models.SmallIntegerField(null=True, blank=True)

    # Remap bonus points (sum 14)
    intelligence = models.SmallIntegerField(default=0)
    memory = models.SmallIntegerField(default=0)
    perception = models.SmallIntegerField(default=0)
    willpower = models.SmallIntegerField(default=0)
    charisma = models.SmallIntegerField(default=0)

    display_order = models.IntegerField(default=0)

    class Meta:
        verbose_name = _('skill plan remap')
        verbose_name_plural = _('skill plan remaps')
        ordering = ['skill_plan', 'display_order', 'id']

    def __str__(self) -> str:
        anchor = f"after {self.after_skill_id} L{self.after_level}" if self.after_skill_id else "at start"
        return f"{self.skill_plan.name}: remap {anchor}"
