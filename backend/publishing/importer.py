"""Imports the Programmazione.it v6.4 MySQL database into the publishing models.

The import is single-threaded and fail-fast: a failing query aborts it. A record
that can't be saved is logged as critical and skipped. Records already
imported (matched on their legacy id) are skipped, so the import can be rerun.
"""
import datetime
import logging
import uuid
from typing import Any, Callable, Dict, Iterable, List, Optional

from django.db import connections, transaction

from .converters import bbcode_to_markdown, extract_book_sections, html_to_markdown
from .counters import DOWNLOADS, HITS, Counters
from .models import Article, Book, Classification, Member, Post, Reply, Star, Subscription, Tag, Tutorial
from .text import normalize_tag_name
from .versioning import CURRENT

logger = logging.getLogger(__name__)

ARTICLE_DRAFT = 0
ARTICLE = 2
BOOK_DRAFT = 10
BOOK = 11

ENTITIES = [
    "users",
    "articles",
    "books",
    "tags",
    "classifications",
    "favorites",
    "tutorials",
    "subscriptions",
    "replies",
]

USERS_SQL = (
    "SELECT id, name AS firstName, surname AS lastName, nickName AS displayName, email, password, sex, "
    "UNIX_TIMESTAMP(birthDate) AS birthday, ipAddress, confirmHash AS confirmationHash, confirmed, "
    "UNIX_TIMESTAMP(regDate) AS creationDate, lastUpdate, realNamePcy FROM Member"
)
ARTICLES_SQL = (
    "SELECT idItem, I.id AS id, M.id AS userId, contributorName, I.title, body, UNIX_TIMESTAMP(date) AS unixTime, "
    "hitNum, downloadNum, locked FROM Item I LEFT OUTER JOIN Member M USING (idMember) "
    f"WHERE (stereotype = {ARTICLE}) ORDER BY date DESC"
)
BOOKS_SQL = (
    "SELECT idItem, I.id AS id, M.id AS userId, contributorName, I.title, body, UNIX_TIMESTAMP(date) AS unixTime, "
    "hitNum, locked FROM Item I LEFT OUTER JOIN Member M USING (idMember) "
    f"WHERE (stereotype = {BOOK}) ORDER BY date DESC"
)
TAG_OWNER_SQL = "SELECT id FROM Member WHERE idMember = 1"
TAGS_SQL = "SELECT id, idCategory, name, UNIX_TIMESTAMP(lastUpdate) AS unixTime, passed FROM Category"
CLASSIFICATIONS_SQL = (
    "SELECT I.id AS itemId, C.id AS tagId, I.stereotype AS stereotype, UNIX_TIMESTAMP(I.date) AS unixTime "
    "FROM Item I, Category C, ItemsXCategory X WHERE I.idItem = X.idItem AND C.idCategory = X.idCategory "
    f"AND (I.stereotype = {ARTICLE} OR I.stereotype = {BOOK})"
)
FAVORITES_SQL = (
    "SELECT I.id AS itemId, I.stereotype, M.id AS userId, UNIX_TIMESTAMP(F.date) AS timestamp "
    "FROM Item I, Member M, Favourite F WHERE I.idItem = F.idItem AND M.idMember = F.idMember "
    f"AND (I.stereotype = {ARTICLE} OR I.stereotype = {BOOK})"
)
TUTORIALS_SQL = (
    "SELECT correlationCode, I.title, UNIX_TIMESTAMP(MIN(date)) AS unixTime, contributorName, M.id AS userId "
    "FROM Item I LEFT OUTER JOIN Member M USING (idMember) "
    f"WHERE (stereotype = {ARTICLE}) GROUP BY correlationCode HAVING COUNT(correlationCode) > 1 ORDER BY unixTime ASC"
)
TUTORIAL_POSTS_SQL = (
    "SELECT id, UNIX_TIMESTAMP(date) AS unixTime, hitNum FROM Item WHERE correlationCode = %s ORDER BY date ASC"
)
SUBSCRIPTIONS_SQL = (
    "SELECT I.id AS itemId, M.id AS userId, UNIX_TIMESTAMP(T.creationTime) AS timestamp "
    "FROM Item I, Member M, Thread T WHERE I.idItem = T.idItem AND M.idMember = T.idMember"
)
REPLIES_SQL = (
    "SELECT C.idComment AS id, I.id AS postId, M.id AS userId, UNIX_TIMESTAMP(C.date) AS unixTime, C.body "
    "FROM Comment C, Item I, Member M WHERE C.idItem = I.idItem AND C.idMember = M.idMember ORDER BY C.date DESC"
)

TUTORIAL_TITLE_TRAILER = "()/123456789 \t\n\r\0\x0b"


class LegacySource:
    """Runs raw queries against the ``legacy`` database alias, returning rows as dicts."""

    def __init__(self, alias: str = "legacy"):
        self.alias = alias

    def query(self, sql: str, params: Optional[Iterable[Any]] = None) -> List[Dict[str, Any]]:
        with connections[self.alias].cursor() as cursor:
            cursor.execute(sql, params)
            columns = [column[0] for column in cursor.description]
            return [dict(zip(columns, row)) for row in cursor.fetchall()]


def latin1(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("latin-1")
    return str(value)


def from_timestamp(value: Any) -> Optional[datetime.datetime]:
    try:
        seconds = int(value or 0)
    except (TypeError, ValueError):
        return None
    if seconds <= 0:
        return None
    return datetime.datetime.fromtimestamp(seconds, tz=datetime.timezone.utc)


def _int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


class LegacyImporter:
    def __init__(
        self,
        source: LegacySource,
        counters: Counters,
        limit: int = 0,
        write: Optional[Callable[[str], None]] = None,
    ):
        self.source = source
        self.counters = counters
        self.limit = f" LIMIT {int(limit)}" if limit and int(limit) > 0 else ""
        self.write = write or logger.info
        self.stats: Dict[str, Dict[str, int]] = {}
        self._members: Dict[str, Optional[Member]] = {}

    def run(self, entities: Iterable[str]) -> Dict[str, Dict[str, int]]:
        names = list(entities)
        if "all" in names:
            names = list(ENTITIES)
        for name in names:
            getattr(self, f"import_{name}")()
        return self.stats

    # Helpers

    def _rows(self, label: str, sql: str) -> List[Dict[str, Any]]:
        self.write(f"Importing {label}...")
        rows = self.source.query(sql + self.limit)
        self.stats[label] = {"rows": len(rows), "imported": 0, "skipped": 0, "failed": 0}
        return rows

    def _tally(self, label: str, outcome: str) -> None:
        self.stats[label][outcome] += 1

    def _finish(self, label: str) -> None:
        stats = self.stats[label]
        self.write(
            f"Imported {label}: {stats['imported']}/{stats['rows']} (skipped={stats['skipped']}, failed={stats['failed']})"
        )

    def _save(self, label: str, document, description: str) -> bool:
        try:
            with transaction.atomic():
                document.save()
        except Exception:
            logger.critical("Invalid document: %s - %s", label, description, exc_info=True)
            self._tally(label, "failed")
            return False
        self._tally(label, "imported")
        return True

    def _member(self, legacy_id: Any) -> Optional[Member]:
        key = latin1(legacy_id)
        if not key:
            return None
        if key not in self._members:
            self._members[key] = Member.objects.filter(legacy_id=key).first()
        return self._members[key]

    def _assign_author(self, post: Post, item: Dict[str, Any]) -> None:
        member = self._member(item.get("userId"))
        contributor = latin1(item.get("contributorName")).strip()
        if member:
            post.author = member
            post.username = ""
        elif contributor:
            post.author = None
            post.username = contributor
        else:
            post.author = None
            post.username = ""

    @staticmethod
    def _convert_body(raw: str) -> str:
        return bbcode_to_markdown(html_to_markdown(raw))

    # Entities

    def import_users(self) -> None:
        label = "users"
        for item in self._rows(label, USERS_SQL):
            legacy_id = latin1(item["id"])
            if Member.objects.filter(legacy_id=legacy_id).exists():
                self._tally(label, "skipped")
                continue
            display_name = latin1(item.get("displayName")).strip()
            birthday = from_timestamp(item.get("birthday"))
            member = Member(
                legacy_id=legacy_id,
                username=Member.unique_username(display_name or legacy_id),
                first_name=latin1(item.get("firstName")),
                last_name=latin1(item.get("lastName")),
                display_name=display_name,
                email=latin1(item.get("email")),
                password_hash=latin1(item.get("password")),
                birthday=birthday.date() if birthday else None,
                sex=latin1(item.get("sex")).lower()[:1],
                ip_address=latin1(item.get("ipAddress")),
                confirmation_hash=latin1(item.get("confirmationHash")),
                created_at=from_timestamp(item.get("creationDate")) or datetime.datetime.now(tz=datetime.timezone.utc),
            )
            if _int(item.get("confirmed")) == 1:
                member.confirm()
            if self._save(label, member, legacy_id):
                self._members[legacy_id] = member
        self._finish(label)

    def import_articles(self) -> None:
        label = "articles"
        for item in self._rows(label, ARTICLES_SQL):
            legacy_id = latin1(item["id"])
            if Article.objects.filter(legacy_id=legacy_id).exists():
                self._tally(label, "skipped")
                continue
            article = Article(legacy_id=legacy_id, state=CURRENT)
            article.set_id(legacy_id)
            article.publishing_date = from_timestamp(item.get("unixTime"))
            article.title = latin1(item.get("title"))
            article.locked = _int(item.get("locked")) == 1
            self._assign_author(article, item)
            article.body = self._convert_body(latin1(item.get("body")))
            if not self._save(label, article, f"{item.get('idItem')} - {article.title}"):
                continue
            self.counters.set(article.unversion_id, HITS, _int(item.get("hitNum")))
            if _int(item.get("downloadNum")) > 0:
                self.counters.set(article.unversion_id, DOWNLOADS, _int(item.get("downloadNum")))
        self._finish(label)

    def import_books(self) -> None:
        label = "books"
        for item in self._rows(label, BOOKS_SQL):
            legacy_id = latin1(item["id"])
            if Book.objects.filter(legacy_id=legacy_id).exists():
                self._tally(label, "skipped")
                continue
            book = Book(legacy_id=legacy_id, state=CURRENT)
            book.set_id(legacy_id)
            book.publishing_date = from_timestamp(item.get("unixTime"))
            book.title = latin1(item.get("title"))
            book.locked = _int(item.get("locked")) == 1
            self._assign_author(book, item)
            sections = extract_book_sections(latin1(item.get("body")))
            for name in ("isbn", "authors", "publisher", "language", "year", "pages"):
                if name in sections:
                    setattr(book, name, sections[name].strip())
            if sections.get("attachments", "").strip():
                book.attachments = sections["attachments"].strip()
            if sections.get("vendorLink", "").strip():
                book.link = sections["vendorLink"].strip()
            book.body = bbcode_to_markdown(sections.get("review", ""))
            book.positive = bbcode_to_markdown(sections.get("positive", ""))
            book.negative = bbcode_to_markdown(sections.get("negative", ""))
            if self._save(label, book, f"{item.get('idItem')} - {book.title}"):
                self.counters.set(book.unversion_id, HITS, _int(item.get("hitNum")))
        self._finish(label)

    def import_tags(self) -> None:
        label = "tags"
        owner_rows = self.source.query(TAG_OWNER_SQL)
        owner = self._member(owner_rows[0]["id"]) if owner_rows else None
        for item in self._rows(label, TAGS_SQL):
            legacy_id = latin1(item["id"])
            if Tag.objects.filter(legacy_id=legacy_id).exists():
                self._tally(label, "skipped")
                continue
            tag = Tag(legacy_id=legacy_id, name=normalize_tag_name(latin1(item.get("name"))), creator=owner)
            created_at = from_timestamp(item.get("unixTime"))
            if created_at:
                tag.created_at = created_at
            self._save(label, tag, f"{legacy_id} - {tag.name}")
        self._finish(label)

    def import_classifications(self) -> None:
        label = "classifications"
        tags: Dict[str, Optional[Tag]] = {}
        for item in self._rows(label, CLASSIFICATIONS_SQL):
            item_id = latin1(item["itemId"])
            tag_key = latin1(item["tagId"])
            if tag_key not in tags:
                tags[tag_key] = Tag.objects.filter(legacy_id=tag_key).first()
            tag = tags[tag_key]
            if tag is None:
                logger.critical("Unknown tag %s classifying %s", tag_key, item_id)
                self._tally(label, "failed")
                continue
            if Classification.objects.filter(post_id=item_id, tag=tag).exists():
                self._tally(label, "skipped")
                continue
            classification = Classification(
                post_id=item_id,
                post_type="article" if _int(item.get("stereotype")) == ARTICLE else "book",
                section="blog",
                tag=tag,
            )
            created_at = from_timestamp(item.get("unixTime"))
            if created_at:
                classification.created_at = created_at
            self._save(label, classification, f"{item_id} - {tag.name}")
        self._finish(label)

    def import_favorites(self) -> None:
        label = "favorites"
        for item in self._rows(label, FAVORITES_SQL):
            member = self._member(item.get("userId"))
            item_id = latin1(item["itemId"])
            if member is None:
                logger.critical("Unknown member %s starring %s", latin1(item.get("userId")), item_id)
                self._tally(label, "failed")
                continue
            if Star.objects.filter(member=member, item_id=item_id).exists():
                self._tally(label, "skipped")
                continue
            star = Star(
                member=member,
                item_id=item_id,
                item_type="article" if _int(item.get("stereotype")) == ARTICLE else "book",
            )
            created_at = from_timestamp(item.get("timestamp"))
            if created_at:
                star.created_at = created_at
            self._save(label, star, f"{member} * {item_id}")
        self._finish(label)

    def import_tutorials(self) -> None:
        label = "tutorials"
        for item in self._rows(label, TUTORIALS_SQL):
            code = latin1(item.get("correlationCode"))
            if Tutorial.objects.filter(legacy_id=code).exists():
                self._tally(label, "skipped")
                continue
            tutorial = Tutorial(legacy_id=code, state=CURRENT)
            tutorial.set_id(uuid.uuid4().hex)
            tutorial.publishing_date = from_timestamp(item.get("unixTime"))
            tutorial.title = latin1(item.get("title")).rstrip(TUTORIAL_TITLE_TRAILER)
            self._assign_author(tutorial, item)
            related = self.source.query(TUTORIAL_POSTS_SQL, [item.get("correlationCode")])
            hits = 0
            for position, post in enumerate(related):
                tutorial.add_post(latin1(post["id"]), position)
                hits += _int(post.get("hitNum"))
            if self._save(label, tutorial, f"{code} - {tutorial.title}") and hits:
                self.counters.increment(tutorial.unversion_id, HITS, hits)
        self._finish(label)

    def import_subscriptions(self) -> None:
        label = "subscriptions"
        for item in self._rows(label, SUBSCRIPTIONS_SQL):
            member = self._member(item.get("userId"))
            item_id = latin1(item["itemId"])
            if member is None:
                logger.critical("Unknown member %s subscribing %s", latin1(item.get("userId")), item_id)
                self._tally(label, "failed")
                continue
            if Subscription.objects.filter(member=member, item_id=item_id).exists():
                self._tally(label, "skipped")
                continue
            subscription = Subscription(member=member, item_id=item_id)
            created_at = from_timestamp(item.get("timestamp"))
            if created_at:
                subscription.created_at = created_at
            self._save(label, subscription, f"{member} > {item_id}")
        self._finish(label)

    def import_replies(self) -> None:
        label = "replies"
        for item in self._rows(label, REPLIES_SQL):
            legacy_id = latin1(item["id"])
            if Reply.objects.filter(legacy_id=legacy_id).exists():
                self._tally(label, "skipped")
                continue
            reply = Reply(
                legacy_id=legacy_id,
                post_id=latin1(item.get("postId")),
                author=self._member(item.get("userId")),
                body=self._convert_body(latin1(item.get("body"))),
            )
            created_at = from_timestamp(item.get("unixTime"))
            if created_at:
                reply.created_at = created_at
            self._save(label, reply, legacy_id)
        self._finish(label)
