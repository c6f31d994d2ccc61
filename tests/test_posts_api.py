"""Posts: public reads, authoring, ownership checks, likes and comments."""

import pytest

from bloghub.posts import add_comment, create_post, get_post


@pytest.fixture
def author(make_user):
    return make_user("author")


@pytest.fixture
def post(db, author):
    return create_post(db, author, title="Hello", content="First post", description="intro")


# ═══════════════════════════════════════════════════════════
# Reads
# ═══════════════════════════════════════════════════════════


def test_list_posts_newest_first(client, db, author):
    create_post(db, author, title="Older", content="a")
    create_post(db, author, title="Newer", content="b")

    r = client.get("/posts")
    assert r.status_code == 200
    titles = [p["title"] for p in r.json()["posts"]]
    assert titles == ["Newer", "Older"]


def test_list_posts_by_author(client, db, author, make_user):
    create_post(db, author, title="Mine", content="a")
    create_post(db, make_user("other"), title="Theirs", content="b")

    r = client.get("/posts", params={"authorId": author.id})
    assert [p["title"] for p in r.json()["posts"]] == ["Mine"]


def test_get_post(client, post):
    r = client.get(f"/posts/{post.id}")
    assert r.status_code == 200
    data = r.json()["post"]
    assert data["title"] == "Hello"
    assert data["authorName"] == "author"
    assert data["likes"] == []
    assert data["comments"] == []


def test_get_missing_post(client):
    r = client.get("/posts/does-not-exist")
    assert r.status_code == 404
    assert r.json() == {"error": "Post not found"}


# ═══════════════════════════════════════════════════════════
# Create / update / delete
# ═══════════════════════════════════════════════════════════


def test_create_post_requires_login(client):
    r = client.post("/posts", json={"title": "t", "content": "c"})
    assert r.status_code == 401


def test_create_post_uses_caller_as_author(author, login_as):
    http = login_as(author)
    r = http.post("/posts", json={"title": "  Spaced  ", "content": "Body", "imageUrl": ""})
    assert r.status_code == 201
    data = r.json()["post"]
    assert data["title"] == "Spaced"
    assert data["authorId"] == author.id


def test_create_post_requires_title(author, login_as):
    r = login_as(author).post("/posts", json={"title": "   ", "content": "Body"})
    assert r.status_code == 400
    assert r.json()["errors"] == {"title": "This field is required"}


def test_author_can_edit(db, post, author, login_as):
    r = login_as(author).put(f"/posts/{post.id}", json={"title": "Edited"})
    assert r.status_code == 200
    db.expire_all()
    assert get_post(db, post.id).title == "Edited"


def test_admin_can_edit_any_post(db, post, make_user, login_as):
    admin = make_user("boss", is_admin=True)
    r = login_as(admin).put(f"/posts/{post.id}", json={"content": "Moderated"})
    assert r.status_code == 200


def test_stranger_cannot_edit(post, make_user, login_as):
    r = login_as(make_user("stranger")).put(f"/posts/{post.id}", json={"title": "Mine now"})
    assert r.status_code == 403
    assert r.json() == {"error": "You can only edit your own posts"}


def test_edit_needs_at_least_one_field(post, author, login_as):
    r = login_as(author).put(f"/posts/{post.id}", json={"title": "  "})
    assert r.status_code == 400
    assert r.json()["error"] == "At least one field is required for update"


def test_edit_missing_post(author, login_as):
    r = login_as(author).put("/posts/nope", json={"title": "x"})
    assert r.status_code == 404


def test_stranger_cannot_delete(db, post, make_user, login_as):
    r = login_as(make_user("stranger")).delete(f"/posts/{post.id}")
    assert r.status_code == 403
    assert get_post(db, post.id) is not None


def test_author_can_delete(db, post, author, login_as):
    post_id = post.id
    r = login_as(author).delete(f"/posts/{post_id}")
    assert r.status_code == 200
    assert get_post(db, post_id) is None


# ═══════════════════════════════════════════════════════════
# Likes
# ═══════════════════════════════════════════════════════════


def test_like_and_unlike(client, post, make_user, login_as):
    reader = make_user("reader")
    http = login_as(reader)

    r = http.patch(f"/posts/{post.id}", json={"action": "like"})
    assert r.status_code == 200
    assert client.get(f"/posts/{post.id}").json()["post"]["likes"] == [reader.id]

    r = http.patch(f"/posts/{post.id}", json={"action": "unlike", "userId": reader.id})
    assert r.status_code == 200
    assert client.get(f"/posts/{post.id}").json()["post"]["likes"] == []


def test_like_twice_is_rejected(post, make_user, login_as):
    http = login_as(make_user("reader"))
    http.patch(f"/posts/{post.id}", json={"action": "like"})
    r = http.patch(f"/posts/{post.id}", json={"action": "like"})
    assert r.status_code == 400


def test_cannot_like_as_someone_else(post, author, make_user, login_as):
    http = login_as(make_user("reader"))
    r = http.patch(f"/posts/{post.id}", json={"action": "like", "userId": author.id})
    assert r.status_code == 403
    assert r.json() == {"error": "Cannot like post as another user"}


def test_unknown_action(post, author, login_as):
    r = login_as(author).patch(f"/posts/{post.id}", json={"action": "share"})
    assert r.status_code == 400


def test_actions_require_login(client, post):
    r = client.patch(f"/posts/{post.id}", json={"action": "like"})
    assert r.status_code == 401


# ═══════════════════════════════════════════════════════════
# Comments
# ═══════════════════════════════════════════════════════════


def test_add_comment(client, post, make_user, login_as):
    reader = make_user("reader")
    r = login_as(reader).patch(
        f"/posts/{post.id}",
        json={"action": "add-comment", "commentData": {"text": " Great read "}},
    )
    assert r.status_code == 200
    comment = r.json()["comment"]
    assert comment["text"] == "Great read"
    assert comment["authorId"] == reader.id
    assert comment["authorName"] == "reader"

    comments = client.get(f"/posts/{post.id}").json()["post"]["comments"]
    assert [c["id"] for c in comments] == [comment["id"]]


def test_cannot_comment_as_someone_else(post, author, make_user, login_as):
    r = login_as(make_user("reader")).patch(
        f"/posts/{post.id}",
        json={"action": "add-comment", "commentData": {"text": "hi", "authorId": author.id}},
    )
    assert r.status_code == 403


def test_comment_author_can_delete_comment(db, post, make_user, login_as):
    reader = make_user("reader")
    comment = add_comment(db, post, reader, "oops")
    r = login_as(reader).patch(
        f"/posts/{post.id}", json={"action": "delete-comment", "commentId": comment.id}
    )
    assert r.status_code == 200


def test_post_author_cannot_delete_others_comment(db, post, author, make_user, login_as):
    reader = make_user("reader")
    comment = add_comment(db, post, reader, "mine")
    r = login_as(author).patch(
        f"/posts/{post.id}", json={"action": "delete-comment", "commentId": comment.id}
    )
    assert r.status_code == 403
    assert r.json() == {"error": "You can only delete your own comments"}


def test_admin_can_delete_any_comment(db, post, make_user, login_as):
    reader = make_user("reader")
    comment = add_comment(db, post, reader, "spam")
    admin = make_user("boss", is_admin=True)
    r = login_as(admin).patch(
        f"/posts/{post.id}", json={"action": "delete-comment", "commentId": comment.id}
    )
    assert r.status_code == 200


def test_delete_missing_comment(post, author, login_as):
    r = login_as(author).patch(
        f"/posts/{post.id}", json={"action": "delete-comment", "commentId": "ghost"}
    )
    assert r.status_code == 404
