def test_course_create_join_and_members(make_client):
    ada = make_client("Ada")
    bob = make_client("Bob")

    created = ada.post("/api/courses", json={"code": "MATH201", "name": "Linear Algebra", "semester": "Fall"})
    assert created.status_code == 200
    course_id = created.json()["id"]

    assert ada.post(f"/api/courses/{course_id}/join").json() == {"message": "Joined course successfully"}
    assert bob.post(f"/api/courses/{course_id}/join").status_code == 200

    duplicate = bob.post(f"/api/courses/{course_id}/join")
    assert duplicate.status_code == 400
    assert "Already a member" in duplicate.json()["message"]

    members = make_client().get(f"/api/courses/{course_id}/members").json()
    assert {member["firstName"] for member in members} == {"Ada", "Bob"}
    assert all("password" not in member for member in members)

    my_courses = bob.get("/api/courses/my").json()
    assert [course["code"] for course in my_courses] == ["MATH201"]
    assert make_client().get("/api/courses").json()[0]["name"] == "Linear Algebra"


def test_joining_unknown_course_is_404(make_client):
    client = make_client("Ada")

    response = client.post("/api/courses/999/join")

    assert response.status_code == 404
    assert response.json() == {"message": "Course not found"}


def test_forum_categories_are_seeded(make_client):
    categories = make_client().get("/api/forum/categories").json()

    assert len(categories) == 5
    assert {"id", "name", "description", "createdAt"} <= set(categories[0])


def _new_post(client, **overrides):
    category_id = client.get("/api/forum/categories").json()[0]["id"]
    payload = {"title": "Exam tips?", "content": "Share your tricks", "categoryId": category_id, "tags": ["exam", "Exam", " tips "]}
    payload.update(overrides)
    response = client.post("/api/forum/posts", json=payload)
    assert response.status_code == 200, response.text
    return response.json()


def test_post_listing_and_detail_with_replies(make_client):
    author = make_client("Ada")
    replier = make_client("Bob")
    post = _new_post(author)
    assert post["tags"] == ["exam", "tips"]

    reply = replier.post(f"/api/forum/posts/{post['id']}/replies", json={"content": "Sleep well"})
    assert reply.status_code == 200

    listing = make_client().get("/api/forum/posts", params={"categoryId": post["categoryId"]}).json()
    assert listing[0]["id"] == post["id"]
    assert listing[0]["replyCount"] == 1
    assert listing[0]["author"]["firstName"] == "Ada"
    assert "password" not in listing[0]["author"]

    detail = make_client().get(f"/api/forum/posts/{post['id']}").json()
    assert detail["category"]["id"] == post["categoryId"]
    assert [r["content"] for r in detail["replies"]] == ["Sleep well"]
    assert detail["replies"][0]["author"]["firstName"] == "Bob"

    other_category = make_client().get("/api/forum/categories").json()[1]["id"]
    assert make_client().get("/api/forum/posts", params={"categoryId": other_category}).json() == []


def test_forum_writes_require_session_and_existing_targets(make_client):
    anonymous = make_client()
    client = make_client("Ada")

    assert anonymous.post("/api/forum/posts", json={"title": "t", "content": "c"}).status_code == 401
    assert client.post("/api/forum/posts/999/replies", json={"content": "hi"}).status_code == 404
    assert client.get("/api/forum/posts/999").status_code == 404
    assert client.post("/api/forum/posts", json={"title": "t", "content": "c", "categoryId": 999}).status_code == 404


def test_post_vote_counts_match_distinct_voters(make_client):
    author = make_client("Ada")
    post = _new_post(author)
    up_voters = [make_client(f"Up{i}") for i in range(3)]
    down_voters = [make_client(f"Down{i}") for i in range(2)]

    for voter in up_voters:
        assert voter.post(f"/api/forum/posts/{post['id']}/vote", json={"voteType": "up"}).status_code == 200
    for voter in down_voters:
        result = voter.post(f"/api/forum/posts/{post['id']}/vote", json={"voteType": "down"}).json()

    assert result["message"] == "Vote recorded"
    assert (result["upvotes"], result["downvotes"]) == (3, 2)
    detail = author.get(f"/api/forum/posts/{post['id']}").json()
    assert (detail["upvotes"], detail["downvotes"]) == (3, 2)


def test_repeat_vote_toggles_and_opposite_vote_switches(make_client):
    author = make_client("Ada")
    voter = make_client("Bob")
    post = _new_post(author)
    url = f"/api/forum/posts/{post['id']}/vote"

    first = voter.post(url, json={"voteType": "up"}).json()
    assert (first["upvotes"], first["downvotes"], first["userVote"]) == (1, 0, "up")

    switched = voter.post(url, json={"voteType": "down"}).json()
    assert (switched["upvotes"], switched["downvotes"], switched["userVote"]) == (0, 1, "down")

    removed = voter.post(url, json={"voteType": "down"}).json()
    assert (removed["upvotes"], removed["downvotes"], removed["userVote"]) == (0, 0, None)


def test_reply_votes_are_counted_separately(make_client):
    author = make_client("Ada")
    voter = make_client("Bob")
    post = _new_post(author)
    reply = author.post(f"/api/forum/posts/{post['id']}/replies", json={"content": "Me first"}).json()

    result = voter.post(f"/api/forum/replies/{reply['id']}/vote", json={"voteType": "up"}).json()

    assert (result["upvotes"], result["downvotes"]) == (1, 0)
    detail = author.get(f"/api/forum/posts/{post['id']}").json()
    assert detail["upvotes"] == 0
    assert detail["replies"][0]["upvotes"] == 1
    assert voter.post("/api/forum/replies/999/vote", json={"voteType": "up"}).status_code == 404
    assert voter.post(f"/api/forum/replies/{reply['id']}/vote", json={"voteType": "sideways"}).status_code == 400
