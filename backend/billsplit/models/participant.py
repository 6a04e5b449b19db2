from pydantic import BaseModel, ConfigDict


class Participant(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    initial: str
    color: str
    is_payer: bool = False
