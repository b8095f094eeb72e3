"""
Models for the skill planner.

Character is the only model defined here; the SDE reference tables and the
character/skill plan tables live in submodules and are imported below so
Django registers them with this app.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class Character(models.Model):
    """An EVE character whose skills are cached locally."""

    id = models.BigIntegerField(primary_key=True)
    name = models.CharField(max_length=255)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('character')
        verbose_name_plural = _('characters')
        ordering = ['name']

    def __str__(self) -> str:
        return self.name


from planner.eve.models import ItemGroup, ItemType, TypeAttribute  # noqa: E402,F401
from planner.character.models import (  # noqa: E402,F401
    CharacterAttributes,
    CharacterImplant,
    CharacterSkill,
    SkillPlan,
    SkillPlanEntry,
    SkillPlanRemap,
)
