"""
HTTP tests for the API layer.

These tests prove:
- refusals from the engine map onto 422 / 404 / 409 with a coded body
- list filters are answered from the indexes
- the user, badge and reporting endpoints expose the engine state
"""


def submit(client, **overrides):
    payload = {
        "title": "Streetlight out",
        "description": "Dark since Friday",
        "category": "Electricity",
        "priority": "Low",
        "location": "Downtown, Durban",
        "user_id": "user_123",
    }
    payload.update(overrides)
    return client.post("/api/issues", json=payload)


class TestIssueEndpoints:

    def test_submit_issue(self, client):
        response = submit(client)

        assert response.status_code == 201
        body = response.json()
        assert body["points_awarded"] == 15
        assert body["issue"]["status"] == "Open"
        assert body["issue"]["points_awarded"] == 15
        assert body["issue"]["resolved_at"] is None
        assert [e["badge"]["id"] for e in body["badges_earned"]] == ["FirstReport"]

    def test_blank_title_is_refused_by_the_engine(self, client, runtime):
        response = submit(client, title="   ")

        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "VALIDATION_ERROR"
        assert runtime.store.count() == 0

    def test_empty_title_is_refused_by_the_schema(self, client):
        response = submit(client, title="")
        assert response.status_code == 422

    def test_unknown_category_is_refused(self, client):
        response = submit(client, category="Potholes")
        assert response.status_code == 422

    def test_get_issue(self, client):
        issue_id = submit(client).json()["issue"]["id"]

        response = client.get(f"/api/issues/{issue_id}")
        assert response.status_code == 200
        assert response.json()["title"] == "Streetlight out"

        assert client.get("/api/issues/does-not-exist").status_code == 404

    def test_list_and_filter(self, client):
        submit(client, category="Roads", priority="High", location="North End")
        submit(client, category="Roads", priority="Low", location="Somewhere")
        submit(client, category="Electricity", priority="Critical")

        everything = client.get("/api/issues").json()
        assert [i["priority"] for i in everything] == ["Critical", "High", "Low"]

        roads = client.get("/api/issues", params={"category": "Roads"}).json()
        assert {i["category"] for i in roads} == {"Roads"}
        assert len(roads) == 2

        north_roads = client.get("/api/issues", params={"category": "Roads", "zone": "North"}).json()
        assert [i["location"] for i in north_roads] == ["North End"]

        assert client.get("/api/issues", params={"status": "Closed"}).json() == []

    def test_status_update(self, client):
        issue_id = submit(client).json()["issue"]["id"]

        response = client.put(f"/api/issues/{issue_id}/status", json={"status": "InProgress"})
        assert response.status_code == 200
        assert response.json()["previous_status"] == "Open"
        assert response.json()["issue"]["status"] == "InProgress"

        response = client.put(f"/api/issues/{issue_id}/status", json={"status": "Resolved"})
        assert response.json()["issue"]["resolved_at"] is not None

        in_progress = client.get("/api/issues", params={"status": "InProgress"}).json()
        assert in_progress == []

    def test_reopen_is_a_conflict(self, client):
        issue_id = submit(client).json()["issue"]["id"]
        client.put(f"/api/issues/{issue_id}/status", json={"status": "Resolved"})

        response = client.put(f"/api/issues/{issue_id}/status", json={"status": "Open"})

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "INVALID_TRANSITION"
        assert client.get(f"/api/issues/{issue_id}").json()["status"] == "Resolved"

    def test_status_update_unknown_issue(self, client):
        response = client.put("/api/issues/missing/status", json={"status": "Resolved"})
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "NOT_FOUND"

    def test_status_update_records_history(self, client):
        issue_id = submit(client).json()["issue"]["id"]
        client.put(f"/api/issues/{issue_id}/status", json={"status": "InProgress", "changed_by": "crew_7"})
        client.put(f"/api/issues/{issue_id}/status", json={
            "status": "Resolved", "changed_by": "crew_7", "comments": "Bulb replaced"
        })
        client.put(f"/api/issues/{issue_id}/status", json={"status": "Open"})  # refused

        history = client.get(f"/api/issues/{issue_id}/history").json()

        assert [(h["previous_status"], h["new_status"]) for h in history] == [
            ("Open", "InProgress"),
            ("InProgress", "Resolved"),
        ]
        assert history[1]["changed_by"] == "crew_7"
        assert history[1]["comments"] == "Bulb replaced"

    def test_history_of_unknown_issue(self, client):
        assert client.get("/api/issues/missing/history").status_code == 404

    def test_unknown_status_value_is_refused(self, client):
        issue_id = submit(client).json()["issue"]["id"]
        response = client.put(f"/api/issues/{issue_id}/status", json={"status": "Reopened"})
        assert response.status_code == 422


class TestUserEndpoints:

    def test_progress(self, client):
        submit(client, priority="Critical", attachments=["photo.jpg"])

        response = client.get("/api/users/user_123/progress")
        assert response.status_code == 200
        body = response.json()
        assert body["total_points"] == 35
        assert body["level"] == "Bronze"
        assert body["issues_submitted"] == 1
        assert {e["badge"]["id"] for e in body["earned_badges"]} == {
            "FirstReport", "MediaContributor", "EmergencyResponder"
        }

    def test_progress_for_unknown_user(self, client):
        assert client.get("/api/users/nobody/progress").status_code == 404

    def test_badge_stats(self, client):
        submit(client)
        body = client.get("/api/users/user_123/badges").json()
        assert body["earned_badges"] == 1
        assert body["points_from_badges"] == 25
        assert body["locked_badges"] == body["total_badges"] - 1

    def test_notifications_read_and_delete(self, client):
        submit(client)
        notifications = client.get("/api/users/user_123/notifications").json()
        assert len(notifications) == 2
        first = notifications[0]["id"]

        assert client.put(f"/api/users/user_123/notifications/{first}/read").status_code == 204
        assert client.put("/api/users/user_123/notifications/missing/read").status_code == 404

        unread = client.get("/api/users/user_123/notifications", params={"unread_only": True}).json()
        assert len(unread) == 1

        assert client.put("/api/users/user_123/notifications/read-all").json() == {"marked": 1}

        assert client.delete(f"/api/users/user_123/notifications/{first}").status_code == 204
        assert client.delete(f"/api/users/user_123/notifications/{first}").status_code == 404
        assert len(client.get("/api/users/user_123/notifications").json()) == 1


class TestCatalogueAndReporting:

    def test_badge_catalogue(self, client):
        badges = client.get("/api/badges").json()
        ids = [b["id"] for b in badges]
        assert "FirstReport" in ids
        assert "CategorySpecialist:Roads" in ids

        roads = client.get("/api/badges", params={"category": "Roads"}).json()
        assert {b["id"] for b in roads} == {"CategorySpecialist:Roads", "RoadWarrior"}

    def test_leaderboard(self, client):
        submit(client, user_id="alice", priority="Low")
        submit(client, user_id="bob", priority="Critical")

        board = client.get("/api/leaderboard", params={"limit": 1}).json()
        assert len(board) == 1
        assert board[0]["user_id"] == "bob"
        assert board[0]["rank"] == 1

    def test_leaderboard_limit_must_be_positive(self, client):
        submit(client)
        assert client.get("/api/leaderboard", params={"limit": 0}).status_code == 422
        assert client.get("/api/leaderboard", params={"limit": -1}).status_code == 422

    def test_analytics(self, client):
        submit(client)
        body = client.get("/api/analytics").json()
        assert body["total_issues"] == 1
        assert body["category_distribution"]["Electricity"] == 1
        assert body["zone_distribution"]["City"] == 1
        assert body["average_resolution_hours"] is None
        assert body["resolution_hours_by_category"]["Electricity"] is None
        assert body["peak_reporting_day"] == "Friday"
        assert body["peak_reporting_hour"] == 8

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
