import os

import django
from rq import Worker


def main() -> None:
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "reindex.settings")
    django.setup()

    from publishing.jobs import get_redis

    worker = Worker(["default"], connection=get_redis())
    worker.work()


if __name__ == "__main__":
    main()
