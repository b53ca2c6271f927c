from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    A single configuration parameter a client reads from the environment.

    Attributes:
        env_key (str): The raw key; the client prefixes it with "{CLIENT_TYPE}_{ENGINE}_".
        val_type (str): "string", "number", "bool" or "list".
        default (str | int | bool | list | None): Fallback value. None marks the key as required.
    """

    env_key: str
    val_type: str
    default: str | int | float | bool | list | None = None
