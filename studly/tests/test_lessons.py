def test_create_lesson_under_subject(auth_client, hierarchy):
    response = auth_client.post("/api/lessons", json={"name": "Décimaux", "subjectId": hierarchy["subject"]["id"]})
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["subject"]["name"] == "Math"


def test_create_lesson_with_missing_subject(auth_client):
    response = auth_client.post("/api/lessons", json={"name": "Décimaux", "subjectId": 321})
    assert response.status_code == 400
    assert response.json()["error"] == "Referenced entity does not exist: subjectId=321"


def test_lesson_name_unique_within_subject(auth_client, hierarchy):
    response = auth_client.post("/api/lessons", json={"name": "fractions", "subjectId": hierarchy["subject"]["id"]})
    assert response.status_code == 400


def test_lessons_sorted_by_name_by_default(auth_client, hierarchy, create):
    subject_id = hierarchy["subject"]["id"]
    create("lessons", {"name": "Addition", "subjectId": subject_id})
    create("lessons", {"name": "Multiplication", "subjectId": subject_id})

    names = [item["name"] for item in auth_client.get("/api/lessons").json()["data"]]
    assert names == ["Addition", "Fractions", "Multiplication"]

    body = auth_client.get("/api/lessons", params={"orderBy": "name", "order": "desc"}).json()
    assert [item["name"] for item in body["data"]] == ["Multiplication", "Fractions", "Addition"]

    body = auth_client.get("/api/lessons", params={"orderBy": "createdAt", "order": "desc"}).json()
    assert [item["name"] for item in body["data"]] == ["Multiplication", "Addition", "Fractions"]


def test_lessons_reject_unknown_order(auth_client):
    assert auth_client.get("/api/lessons", params={"orderBy": "points"}).status_code == 400
    assert auth_client.get("/api/lessons", params={"order": "sideways"}).status_code == 400


def test_filter_lessons_by_subject(auth_client, hierarchy, create):
    other = create("subjects", {"name": "Français", "classId": hierarchy["class"]["id"]})
    create("lessons", {"name": "Conjugaison", "subjectId": other["id"]})

    body = auth_client.get("/api/lessons", params={"subjectId": other["id"]}).json()
    assert [item["name"] for item in body["data"]] == ["Conjugaison"]


def test_lesson_includes(auth_client, hierarchy):
    lesson_id = hierarchy["lesson"]["id"]
    body = auth_client.get(f"/api/lessons/{lesson_id}", params={"include": "subject,subLessons,exercises"}).json()
    data = body["data"]
    assert data["subject"]["id"] == hierarchy["subject"]["id"]
    assert [item["name"] for item in data["subLessons"]] == ["Simplify"]
    assert data["exercises"] == []


def test_search_lessons(auth_client, hierarchy, create):
    lesson_id = hierarchy["lesson"]["id"]
    create("exercises", {"name": "Q1", "subjectId": hierarchy["subject"]["id"], "lessonId": lesson_id})
    create("lessons", {"name": "Géométrie", "subjectId": hierarchy["subject"]["id"]})

    response = auth_client.get("/api/lessons/search", params={"q": "fract"})
    assert response.status_code == 200
    hits = response.json()["data"]
    assert len(hits) == 1
    assert hits[0]["subject"]["class"]["name"] == "CM2"
    assert hits[0]["counts"] == {"subLessons": 1, "exercises": 1}


def test_search_lessons_requires_query(auth_client):
    assert auth_client.get("/api/lessons/search").status_code == 400


def test_update_lesson_move_to_missing_subject(auth_client, hierarchy):
    lesson_id = hierarchy["lesson"]["id"]
    response = auth_client.put(f"/api/lessons/{lesson_id}", json={"subjectId": 999})
    assert response.status_code == 400
    assert auth_client.get(f"/api/lessons/{lesson_id}").json()["data"]["subjectId"] == hierarchy["subject"]["id"]


def test_lesson_nested_lists(auth_client, hierarchy, create):
    lesson_id = hierarchy["lesson"]["id"]
    create("sub-lessons", {"name": "Comparer", "lessonId": lesson_id})
    create("exercises", {"name": "Q1", "subjectId": hierarchy["subject"]["id"], "lessonId": lesson_id})

    sub_lessons = auth_client.get(f"/api/lessons/{lesson_id}/sub-lessons").json()
    assert [item["name"] for item in sub_lessons["data"]] == ["Simplify", "Comparer"]

    exercises = auth_client.get(f"/api/lessons/{lesson_id}/exercises").json()
    assert [item["name"] for item in exercises["data"]] == ["Q1"]


def test_enrol_and_unenrol_user(auth_client, hierarchy, student):
    lesson_id = hierarchy["lesson"]["id"]

    response = auth_client.post(f"/api/lessons/{lesson_id}/users", json={"userId": student.id})
    assert response.status_code == 201
    assert response.json()["data"]["userId"] == student.id

    duplicate = auth_client.post(f"/api/lessons/{lesson_id}/users", json={"userId": student.id})
    assert duplicate.status_code == 400

    body = auth_client.get(f"/api/lessons/{lesson_id}", params={"include": "users"}).json()
    assert [user["email"] for user in body["data"]["users"]] == ["student@example.com"]

    response = auth_client.delete(f"/api/lessons/{lesson_id}/users/{student.id}")
    assert response.status_code == 200
    assert auth_client.delete(f"/api/lessons/{lesson_id}/users/{student.id}").status_code == 404


def test_enrol_missing_user(auth_client, hierarchy):
    response = auth_client.post(f"/api/lessons/{hierarchy['lesson']['id']}/users", json={"userId": 77})
    assert response.status_code == 400
    assert response.json()["error"] == "Referenced entity does not exist: userId=77"


def test_delete_lesson_blocked_by_content(auth_client, hierarchy, student):
    lesson_id = hierarchy["lesson"]["id"]
    auth_client.post(f"/api/lessons/{lesson_id}/users", json={"userId": student.id})

    response = auth_client.delete(f"/api/lessons/{lesson_id}")
    assert response.status_code == 400
    assert response.json()["error"] == "Cannot delete lesson: it contains 1 sub-lesson(s), 1 enrolled user(s)"


def test_delete_lesson_after_children_removed(auth_client, hierarchy):
    lesson_id = hierarchy["lesson"]["id"]
    assert auth_client.delete(f"/api/sub-lessons/{hierarchy['sub_lesson']['id']}").status_code == 200
    assert auth_client.delete(f"/api/lessons/{lesson_id}").status_code == 200
    assert auth_client.get(f"/api/lessons/{lesson_id}").status_code == 404
