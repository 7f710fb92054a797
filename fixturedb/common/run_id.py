from __future__ import annotations

import uuid


def generate_run_id() -> str:
    """
    Назначение:
        Идентификатор запуска команды fixturedb: входит в имя лог-файла
        и в каждую запись лога этого запуска.
    """
    return str(uuid.uuid4())
