from pydantic import BaseModel, ConfigDict


class BaseCourseModel(BaseModel):
    """Base Pydantic model for the course video manager.

    Provides defaults specific to our codebase and makes global changes easier.
    """

    model_config = ConfigDict(
        frozen=True,
        revalidate_instances="always",
        validate_assignment=True,
        populate_by_name=True,
    )
