# embeddable_actions/domain/models.py
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = ['Trigger', 'EmbeddableRef', 'BindingScope', 'Binding', 'ActionContext', 'EventRow']


class Trigger(BaseModel):
    id: str = Field(..., description='Stable trigger id, unique within the registry.')
    title: str = Field(..., description='Human readable name shown in the editor.')
    description: str = ''

    model_config = ConfigDict(frozen=True, extra='forbid')

    @field_validator('id')
    @classmethod
    def _id_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError('Trigger id must be a non-empty string')
        return v


class EmbeddableRef(BaseModel):
    id: str
    type: str
    container: Optional[EmbeddableRef] = None

    model_config = ConfigDict(frozen=True)


class BindingScope(BaseModel):
    embeddable_id: str
    embeddable_type: str

    model_config = ConfigDict(frozen=True, extra='forbid')

    @classmethod
    def of(cls, subject: Any) -> Optional['BindingScope']:
        if subject is None:
            return None
        subject_id = getattr(subject, 'id', None)
        subject_type = getattr(subject, 'type', None)
        if not subject_id or not subject_type:
            raise TypeError(f'Subject {subject!r} must expose non-empty id and type')
        return cls(embeddable_id=str(subject_id), embeddable_type=str(subject_type))

    @property
    def key(self) -> tuple[str, str]:
        return (self.embeddable_id, self.embeddable_type)

    def __str__(self) -> str:
        return f'{self.embeddable_type}:{self.embeddable_id}'


class Binding(BaseModel):
    trigger_id: str
    action_id: str
    scope: Optional[BindingScope] = None
    seq: int = Field(0, description='Insertion order assigned by the store.')

    model_config = ConfigDict(frozen=True, extra='forbid')

    def same_mapping(self, trigger_id: str, action_id: str, scope: Optional[BindingScope]) -> bool:
        return self.trigger_id == trigger_id and self.action_id == action_id and self.scope == scope


class ActionContext(BaseModel):
    embeddable: Any = None
    container: Any = None

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @classmethod
    def for_embeddable(cls, embeddable: Any) -> 'ActionContext':
        return cls(embeddable=embeddable, container=getattr(embeddable, 'container', None) if embeddable is not None else None)

    @property
    def subject_scope(self) -> Optional[BindingScope]:
        return BindingScope.of(self.embeddable)

    @property
    def container_scope(self) -> Optional[BindingScope]:
        return BindingScope.of(self.container)


class EventRow(BaseModel):
    action_id: str
    trigger_id: str
    trigger_title: str
    action_title: str

    model_config = ConfigDict(frozen=True)
