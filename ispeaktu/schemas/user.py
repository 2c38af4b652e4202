"""
Signed-in user schema.

is_teacher only selects which views the app renders. Authorization for
teacher actions belongs to the remote store, not to this flag.
"""

from pydantic import AliasChoices, BaseModel, Field

from ispeaktu.utils.identity import student_uid


class User(BaseModel):
    uid: str
    display_name: str = Field(..., validation_alias=AliasChoices("display_name", "displayName"))
    is_teacher: bool = Field(default=False, validation_alias=AliasChoices("is_teacher", "isTeacher"))

    @classmethod
    def from_display_name(cls, display_name: str, is_teacher: bool = False) -> "User":
        return cls(
            uid=student_uid(display_name),
            display_name=display_name.strip(),
            is_teacher=is_teacher,
        )
