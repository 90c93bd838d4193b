"""Builders for raw pipeline request payloads."""


def execute(sql=None, *, sql_id=None, args=None, named_args=None) -> dict:
    stmt: dict = {}
    if sql is not None:
        stmt["sql"] = sql
    if sql_id is not None:
        stmt["sql_id"] = sql_id
    if args is not None:
        stmt["args"] = args
    if named_args is not None:
        stmt["named_args"] = named_args
    return {"type": "execute", "stmt": stmt}


def batch(*steps: dict) -> dict:
    return {"type": "batch", "batch": {"steps": list(steps)}}


def step(sql: str, condition: dict | None = None, args=None) -> dict:
    entry: dict = {"stmt": {"sql": sql}}
    if args is not None:
        entry["stmt"]["args"] = args
    if condition is not None:
        entry["condition"] = condition
    return entry


def integer(value: int) -> dict:
    return {"type": "integer", "value": str(value)}


def text(value: str) -> dict:
    return {"type": "text", "value": value}
