"""Integration tests for the Directory, Cloud Identity, Licensing, Calendar, Gmail and Reports commands."""

from pathlib import Path

import httpx
import pytest
from click.testing import CliRunner

from gworkspace_admin.cli.main import main

from conftest import RecordingApi, error_response, lines_of, output_of

USERS = "/admin/directory/v1/users"


def write_csv(name: str, lines: list[str]) -> str:
    path = Path.cwd() / name
    path.write_text("\n".join(lines) + "\n")
    return str(path)


@pytest.mark.integration
class TestUsers:
    """Tests for the users commands."""

    def test_should_insert_user_with_nested_name(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify first and last name are sent below name."""
        recording_api.route("POST", USERS, {"id": "u1", "primaryEmail": "alice@example.com"})
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main,
            [
                "users", "insert", "--primaryEmail", "alice@example.com", "--firstName", "Alice",
                "--lastName", "Smith", "--password", "s3cret-pass",
            ],
            obj=runtime,
        )

        assert result.exit_code == 0, result.output
        assert recording_api.json_bodies("POST", USERS) == [
            {
                "primaryEmail": "alice@example.com",
                "name": {"givenName": "Alice", "familyName": "Smith"},
                "password": "s3cret-pass",
            }
        ]
        assert output_of(runtime)["id"] == "u1"

    def test_should_require_insert_fields(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify insert lists every missing required flag."""
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(main, ["users", "insert", "--primaryEmail", "a@example.com"], obj=runtime)

        assert result.exit_code == 2
        assert "--firstName, --lastName, --password" in result.output
        assert recording_api.requests == []

    def test_should_send_explicit_false(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify --suspended=false unsuspends instead of being dropped."""
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main, ["users", "update", "--userKey", "alice@example.com", "--suspended=false"], obj=runtime
        )

        assert result.exit_code == 0, result.output
        assert recording_api.json_bodies("PUT", f"{USERS}/alice@example.com") == [{"suspended": False}]

    def test_should_parse_custom_schemas(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify schema.field=value pairs are nested per schema."""
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main,
            ["users", "update", "--userKey", "u1", "--customSchemas", "hr.costCenter=42;hr.team=ops;it.laptop=x1"],
            obj=runtime,
        )

        assert result.exit_code == 0, result.output
        assert recording_api.json_bodies("PUT", f"{USERS}/u1") == [
            {"customSchemas": {"hr": {"costCenter": "42", "team": "ops"}, "it": {"laptop": "x1"}}}
        ]

    def test_should_reject_empty_custom_schema_entry(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify an empty entry between separators is malformed."""
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main, ["users", "update", "--userKey", "u1", "--customSchemas", "hr.team=ops;;"], obj=runtime
        )

        assert result.exit_code == 2
        assert "--customSchemas" in result.output
        assert "malformed entry" in result.output
        assert recording_api.requests == []

    def test_should_list_all_pages(self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi) -> None:
        """Verify list follows page tokens and defaults the customer."""
        pages = {
            None: {"users": [{"primaryEmail": "a@example.com"}], "nextPageToken": "p2"},
            "p2": {"users": [{"primaryEmail": "b@example.com"}]},
        }
        recording_api.route("GET", USERS, lambda r: httpx.Response(200, json=pages[r.url.params.get("pageToken")]))
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(main, ["users", "list", "--query", "orgUnitPath=/Sales"], obj=runtime)

        assert result.exit_code == 0, result.output
        assert [u["primaryEmail"] for u in output_of(runtime)] == ["a@example.com", "b@example.com"]
        params = recording_api.requests[0].url.params
        assert params["customer"] == "my_customer"
        assert params["query"] == "orgUnitPath=/Sales"
        assert params["maxResults"] == "500"

    def test_should_not_default_customer_with_domain(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify --domain replaces the customer filter."""
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(main, ["users", "list", "--domain", "example.com"], obj=runtime)

        assert result.exit_code == 0, result.output
        assert output_of(runtime) == []
        assert "customer" not in recording_api.requests[0].url.params

    def test_should_make_admins_in_batch(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify makeadmin defaults --status to true for every row."""
        path = write_csv("admins.csv", ["a@example.com", "b@example.com"])
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main, ["users", "makeadmin", "batch", "--path", path, "--userKey", "1"], obj=runtime
        )

        assert result.exit_code == 0, result.output
        assert sorted(r["userKey"] for r in output_of(runtime)) == ["a@example.com", "b@example.com"]
        assert recording_api.json_bodies("POST", f"{USERS}/a@example.com/makeAdmin") == [{"status": True}]
        assert recording_api.json_bodies("POST", f"{USERS}/b@example.com/makeAdmin") == [{"status": True}]

    def test_should_revoke_admin(self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi) -> None:
        """Verify --status=false revokes the privilege."""
        runtime = make_runtime(recording_api.handler, compress=True)

        result = cli_runner.invoke(
            main, ["users", "makeadmin", "--userKey", "a@example.com", "--status=false"], obj=runtime
        )

        assert result.exit_code == 0, result.output
        assert output_of(runtime) == {"userKey": "a@example.com", "status": False, "result": True}
        assert recording_api.json_bodies("POST", f"{USERS}/a@example.com/makeAdmin") == [{"status": False}]

    def test_should_undelete_into_root(self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi) -> None:
        """Verify undelete restores into / without --orgUnitPath."""
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(main, ["users", "undelete", "--userKey", "12345"], obj=runtime)

        assert result.exit_code == 0, result.output
        assert recording_api.json_bodies("POST", f"{USERS}/12345/undelete") == [{"orgUnitPath": "/"}]

    def test_should_exit_1_when_delete_fails(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify a 404 in single mode fails the command."""
        recording_api.route("DELETE", f"{USERS}/ghost@example.com", error_response(404, "Resource Not Found: userKey", "notFound"))
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(main, ["users", "delete", "--userKey", "ghost@example.com"], obj=runtime)

        assert result.exit_code == 1
        assert "Resource Not Found" in result.output

    def test_should_report_failed_batch_delete(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify batch delete keeps going and marks the failed row."""
        recording_api.route("DELETE", f"{USERS}/ghost@example.com", error_response(404, "Resource Not Found", "notFound"))
        path = write_csv("users.csv", ["alice@example.com", "ghost@example.com"])
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main, ["--streamOutput", "users", "delete", "batch", "--path", path, "--userKey", "1"], obj=runtime
        )

        assert result.exit_code == 0, result.output
        records = sorted(lines_of(runtime), key=lambda r: r["userKey"])
        assert records == [
            {"userKey": "alice@example.com", "result": True},
            {"userKey": "ghost@example.com", "result": False},
        ]

    def test_should_retry_on_extra_codes(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify --retryOn makes an otherwise fatal status retryable."""
        recording_api.route(
            "GET",
            f"{USERS}/u1",
            error_response(409, "Conflict", "conflict"),
            {"id": "u1"},
        )
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(main, ["--retryOn", "409", "users", "get", "--userKey", "u1"], obj=runtime)

        assert result.exit_code == 0, result.output
        assert len(recording_api.requests) == 2


@pytest.mark.integration
class TestMembersAndGroups:
    """Tests for the groups and members commands."""

    def test_should_add_member(self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi) -> None:
        """Verify insert posts the member below the group."""
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main,
            ["members", "insert", "--groupKey", "team@example.com", "--email", "bob@example.com", "--role", "MANAGER"],
            obj=runtime,
        )

        assert result.exit_code == 0, result.output
        assert recording_api.json_bodies("POST", "/admin/directory/v1/groups/team@example.com/members") == [
            {"email": "bob@example.com", "role": "MANAGER"}
        ]

    def test_should_check_membership(self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi) -> None:
        """Verify hasmember reports a boolean."""
        recording_api.route(
            "GET", "/admin/directory/v1/groups/team@example.com/hasMember/bob@example.com", {"isMember": True}
        )
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main, ["members", "hasmember", "--groupKey", "team@example.com", "--memberKey", "bob@example.com"], obj=runtime
        )

        assert result.exit_code == 0, result.output
        assert output_of(runtime) == {"groupKey": "team@example.com", "memberKey": "bob@example.com", "isMember": True}

    def test_should_apply_group_key_to_all_rows(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify --groupKey_ALL combines with a member column."""
        path = write_csv("members.csv", ["a@example.com", "b@example.com"])
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main,
            ["members", "delete", "batch", "--path", path, "--memberKey", "1", "--groupKey_ALL", "team@example.com"],
            obj=runtime,
        )

        assert result.exit_code == 0, result.output
        deleted = sorted(r.url.path for r in recording_api.requests if r.method == "DELETE")
        assert deleted == [
            "/admin/directory/v1/groups/team@example.com/members/a@example.com",
            "/admin/directory/v1/groups/team@example.com/members/b@example.com",
        ]

    def test_should_delete_group(self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi) -> None:
        """Verify delete reports the group key."""
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(main, ["groups", "delete", "--groupKey", "old@example.com"], obj=runtime)

        assert result.exit_code == 0, result.output
        assert output_of(runtime) == {"groupKey": "old@example.com", "result": True}


@pytest.mark.integration
class TestOtherServices:
    """Tests for calendar, gmail, reports and shared drive commands."""

    def test_should_default_to_primary_calendar(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify events list uses the primary calendar without --calendarId."""
        recording_api.route("GET", "/calendar/v3/calendars/primary/events", {"items": [{"id": "e1"}]})
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(main, ["events", "list"], obj=runtime)

        assert result.exit_code == 0, result.output
        assert output_of(runtime) == [{"id": "e1"}]

    def test_should_default_to_own_mailbox(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify labels list targets the authenticated user."""
        recording_api.route("GET", "/gmail/v1/users/me/labels", {"labels": [{"id": "INBOX"}]})
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(main, ["labels", "list"], obj=runtime)

        assert result.exit_code == 0, result.output
        assert output_of(runtime) == {"userId": "me", "labels": [{"id": "INBOX"}]}

    def test_should_report_activities_for_all_users(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify activities list defaults --userKey to all."""
        recording_api.route(
            "GET", "/admin/reports/v1/activity/users/all/applications/drive", {"items": [{"id": {"time": "t"}}]}
        )
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main, ["activities", "list", "--applicationName", "drive", "--eventName", "download"], obj=runtime
        )

        assert result.exit_code == 0, result.output
        assert output_of(runtime) == [{"id": {"time": "t"}}]
        assert recording_api.requests[0].url.params["eventName"] == "download"

    def test_should_pass_request_id(self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi) -> None:
        """Verify a given requestId is used for shared drive creation."""
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main, ["drives", "create", "--name", "Finance", "--requestId", "req-1"], obj=runtime
        )

        assert result.exit_code == 0, result.output
        request = recording_api.requests[0]
        assert request.url.params["requestId"] == "req-1"
        assert recording_api.json_bodies("POST", "/drive/v3/drives") == [{"name": "Finance"}]

    def test_should_generate_request_id(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify each create gets a fresh requestId when none is given."""
        path = write_csv("drives.csv", ["Finance", "Legal"])
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(main, ["drives", "create", "batch", "--path", path, "--name", "1"], obj=runtime)

        assert result.exit_code == 0, result.output
        ids = {r.url.params["requestId"] for r in recording_api.requests}
        assert len(ids) == 2


def members_path(group: str) -> str:
    return f"/admin/directory/v1/groups/{group}/members"


@pytest.mark.integration
class TestUserRecursive:
    """Tests for recursive mode over the users of org units and groups."""

    def test_should_insert_every_user_once(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify users from an org unit and a group are each added once."""
        recording_api.route("GET", USERS, {"users": [{"primaryEmail": "a@example.com"}, {"primaryEmail": "b@example.com"}]})
        recording_api.route(
            "GET",
            members_path("other@example.com"),
            {"members": [{"email": "b@example.com", "type": "USER"}, {"email": "c@example.com", "type": "USER"}]},
        )
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main,
            [
                "members", "insert", "recursive", "--groupKey", "team@example.com", "--role", "MANAGER",
                "--orgUnit", "/Sales", "--groupEmail", "other@example.com",
            ],
            obj=runtime,
        )

        assert result.exit_code == 0, result.output
        bodies = recording_api.json_bodies("POST", members_path("team@example.com"))
        assert sorted(b["email"] for b in bodies) == ["a@example.com", "b@example.com", "c@example.com"]
        assert {b["role"] for b in bodies} == {"MANAGER"}
        assert recording_api.requests[0].url.params["query"] == "orgUnitPath='/Sales'"

    def test_should_list_asps_per_user(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify asps list recursive prints one record per user."""
        recording_api.route("GET", USERS, {"users": [{"primaryEmail": "a@example.com"}]})
        recording_api.route("GET", f"{USERS}/a@example.com/asps", {"items": [{"codeId": 1}]})
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(main, ["asps", "list", "recursive", "--orgUnit", "/"], obj=runtime)

        assert result.exit_code == 0, result.output
        assert output_of(runtime) == [{"userKey": "a@example.com", "asps": [{"codeId": 1}]}]

    def test_should_mark_failed_sign_out(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify a user that cannot be signed out is reported and the others still are."""
        recording_api.route(
            "GET",
            members_path("team@example.com"),
            {"members": [{"email": "a@example.com", "type": "USER"}, {"email": "gone@example.com", "type": "USER"}]},
        )
        recording_api.route("POST", f"{USERS}/gone@example.com/signOut", error_response(404, "Resource Not Found"))
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main, ["users", "signout", "recursive", "--groupEmail", "team@example.com"], obj=runtime
        )

        assert result.exit_code == 0, result.output
        assert sorted(output_of(runtime), key=lambda r: r["userKey"]) == [
            {"userKey": "a@example.com", "result": True},
            {"userKey": "gone@example.com", "result": False},
        ]

    def test_should_require_a_source(self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi) -> None:
        """Verify recursive mode without --orgUnit or --groupEmail is a usage error."""
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(main, ["asps", "list", "recursive"], obj=runtime)

        assert result.exit_code == 2
        assert "--orgUnit, --groupEmail" in result.output
        assert recording_api.requests == []


CI_GROUPS = "/v1/groups"


@pytest.mark.integration
class TestCloudIdentity:
    """Tests for the groupsci and groupmembershipsci commands."""

    def test_should_create_group_with_defaults(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify create fills in the own customer as parent and the discussion forum label."""
        recording_api.route("GET", "/admin/directory/v1/customers/my_customer", {"id": "C0123"})
        recording_api.route("POST", CI_GROUPS, {"done": True, "response": {"name": "groups/g1"}})
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main, ["groupsci", "create", "--id", "eng@example.com", "--displayName", "Engineering"], obj=runtime
        )

        assert result.exit_code == 0, result.output
        assert recording_api.json_bodies("POST", CI_GROUPS) == [
            {
                "groupKey": {"id": "eng@example.com"},
                "displayName": "Engineering",
                "parent": "customers/C0123",
                "labels": {"cloudidentity.googleapis.com/groups.discussion_forum": ""},
            }
        ]
        assert recording_api.requests[-1].url.params["initialGroupConfig"] == "EMPTY"
        assert output_of(runtime) == {"name": "groups/g1"}

    def test_should_build_dynamic_group_queries(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify --queries entries become dynamic group queries."""
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main,
            [
                "groupsci", "create", "--id", "dyn@example.com", "--parent", "customers/C0123",
                "--labels", "cloudidentity.googleapis.com/groups.dynamic",
                "--queries", "resourceType=USER;query=user.organizations.exists(org, org.department=='eng')",
            ],
            obj=runtime,
        )

        assert result.exit_code == 0, result.output
        body = recording_api.json_bodies("POST", CI_GROUPS)[0]
        assert body["dynamicGroupMetadata"] == {
            "queries": [{"resourceType": "USER", "query": "user.organizations.exists(org, org.department=='eng')"}]
        }
        assert body["labels"] == {"cloudidentity.googleapis.com/groups.dynamic": ""}

    def test_should_delete_group_by_email(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify --email is looked up to the resource name before deleting."""
        recording_api.route("GET", f"{CI_GROUPS}:lookup", {"name": "groups/g1"})
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(main, ["groupsci", "delete", "--email", "team@example.com"], obj=runtime)

        assert result.exit_code == 0, result.output
        assert recording_api.requests[0].url.params["groupKey.id"] == "team@example.com"
        assert [(r.method, r.url.path) for r in recording_api.requests[1:]] == [("DELETE", f"{CI_GROUPS}/g1")]
        assert output_of(runtime) == {"name": "groups/g1", "result": True}

    def test_should_reject_name_and_email_together(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify a group is named by exactly one of --name and --email."""
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main, ["groupsci", "get", "--name", "groups/g1", "--email", "team@example.com"], obj=runtime
        )

        assert result.exit_code == 2
        assert recording_api.requests == []

    def test_should_derive_update_mask(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify patch sends the changed fields as updateMask."""
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main,
            ["groupsci", "patch", "--name", "groups/g1", "--displayName", "Eng", "--description", "All engineers"],
            obj=runtime,
        )

        assert result.exit_code == 0, result.output
        assert recording_api.requests[0].url.params["updateMask"] == "description,displayName"

    def test_should_create_membership_with_roles(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify roles with an expiry are nested below expiryDetail."""
        recording_api.route("GET", f"{CI_GROUPS}:lookup", {"name": "groups/g1"})
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main,
            [
                "groupmembershipsci", "create", "--email", "team@example.com", "--memberKeyId", "bob@example.com",
                "--roles", "name=MEMBER;expireTime=2030-01-01T00:00:00Z", "--roles", "name=MANAGER",
            ],
            obj=runtime,
        )

        assert result.exit_code == 0, result.output
        assert recording_api.json_bodies("POST", f"{CI_GROUPS}/g1/memberships") == [
            {
                "preferredMemberKey": {"id": "bob@example.com"},
                "roles": [
                    {"name": "MEMBER", "expiryDetail": {"expireTime": "2030-01-01T00:00:00Z"}},
                    {"name": "MANAGER"},
                ],
            }
        ]

    def test_should_reject_mixed_role_changes(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify --updateRolesParams cannot be combined with --addRoles."""
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main,
            [
                "groupmembershipsci", "modifymembershiproles", "--name", "groups/g1/memberships/m1",
                "--addRoles", "name=MANAGER", "--updateRolesParams", "name=MEMBER;expireTime=2030-01-01T00:00:00Z",
            ],
            obj=runtime,
        )

        assert result.exit_code == 2
        assert recording_api.requests == []

    def test_should_check_transitive_membership(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify the check reports hasMembership for the query."""
        recording_api.route(
            "GET", f"{CI_GROUPS}/g1/memberships:checkTransitiveMembership", {"hasMembership": True}
        )
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main,
            [
                "groupmembershipsci", "checktransitivemembership", "--parent", "groups/g1",
                "--query", "member_key_id == 'bob@example.com'",
            ],
            obj=runtime,
        )

        assert result.exit_code == 0, result.output
        assert output_of(runtime) == {
            "parent": "groups/g1",
            "query": "member_key_id == 'bob@example.com'",
            "hasMembership": True,
        }

    def test_should_add_members_recursively(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify create recursive adds every user of the org unit to the group."""
        recording_api.route("GET", USERS, {"users": [{"primaryEmail": "a@example.com"}, {"primaryEmail": "b@example.com"}]})
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main,
            ["groupmembershipsci", "create", "recursive", "--parent", "groups/g1", "--orgUnit", "/Sales"],
            obj=runtime,
        )

        assert result.exit_code == 0, result.output
        bodies = recording_api.json_bodies("POST", f"{CI_GROUPS}/g1/memberships")
        assert sorted(b["preferredMemberKey"]["id"] for b in bodies) == ["a@example.com", "b@example.com"]


@pytest.mark.integration
class TestMailSettings:
    """Tests for the delegates and sendas commands."""

    def test_should_create_delegates_in_batch(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify each row adds its delegate to its mailbox."""
        path = write_csv("delegates.csv", ["alice@example.com;assistant@example.com", "bob@example.com;deputy@example.com"])
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main,
            ["delegates", "create", "batch", "--path", path, "--userId", "1", "--delegateEmail", "2"],
            obj=runtime,
        )

        assert result.exit_code == 0, result.output
        assert recording_api.json_bodies("POST", "/gmail/v1/users/alice@example.com/settings/delegates") == [
            {"delegateEmail": "assistant@example.com"}
        ]
        assert recording_api.json_bodies("POST", "/gmail/v1/users/bob@example.com/settings/delegates") == [
            {"delegateEmail": "deputy@example.com"}
        ]

    def test_should_delete_delegate(self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi) -> None:
        """Verify delete reports mailbox and delegate."""
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(main, ["delegates", "delete", "--delegateEmail", "old@example.com"], obj=runtime)

        assert result.exit_code == 0, result.output
        assert recording_api.requests[0].url.path == "/gmail/v1/users/me/settings/delegates/old@example.com"
        assert output_of(runtime) == {"userId": "me", "delegateEmail": "old@example.com", "result": True}

    def test_should_create_send_as_with_smtp_relay(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify SMTP settings are nested below smtpMsa with the default security mode."""
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main,
            [
                "sendas", "create", "--sendAsEmail", "sales@example.com", "--displayName", "Sales",
                "--smtpHost", "smtp.example.com", "--smtpPort", "587",
            ],
            obj=runtime,
        )

        assert result.exit_code == 0, result.output
        assert recording_api.json_bodies("POST", "/gmail/v1/users/me/settings/sendAs") == [
            {
                "sendAsEmail": "sales@example.com",
                "displayName": "Sales",
                "smtpMsa": {"host": "smtp.example.com", "port": 587, "securityMode": "NONE"},
            }
        ]

    def test_should_verify_send_as(self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi) -> None:
        """Verify verify posts to the alias's verify endpoint."""
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main, ["sendas", "verify", "--userId", "alice@example.com", "--sendAsEmail", "a@example.org"], obj=runtime
        )

        assert result.exit_code == 0, result.output
        request = recording_api.requests[0]
        assert (request.method, request.url.path) == (
            "POST",
            "/gmail/v1/users/alice@example.com/settings/sendAs/a@example.org/verify",
        )

    def test_should_list_send_as_for_group_members(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify list recursive reads the aliases of every group member."""
        recording_api.route(
            "GET", members_path("team@example.com"), {"members": [{"email": "a@example.com", "type": "USER"}]}
        )
        recording_api.route(
            "GET", "/gmail/v1/users/a@example.com/settings/sendAs", {"sendAs": [{"sendAsEmail": "a@example.com"}]}
        )
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main, ["sendas", "list", "recursive", "--groupEmail", "team@example.com"], obj=runtime
        )

        assert result.exit_code == 0, result.output
        assert output_of(runtime) == [{"userId": "a@example.com", "sendAs": [{"sendAsEmail": "a@example.com"}]}]


LICENSES = "/apps/licensing/v1/product/Google-Apps"


@pytest.mark.integration
class TestLicensesAndGroupSettings:
    """Tests for the licenseassignments and groupsettings commands."""

    def test_should_get_licenses_of_org_unit(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify get recursive asks for the SKU license of every user."""
        recording_api.route("GET", USERS, {"users": [{"primaryEmail": "a@example.com"}, {"primaryEmail": "b@example.com"}]})
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main,
            ["licenseassignments", "get", "recursive", "--skuId", "1010020020", "--orgUnit", "/Sales"],
            obj=runtime,
        )

        assert result.exit_code == 0, result.output
        paths = sorted(r.url.path for r in recording_api.requests if r.url.path.startswith(LICENSES))
        assert paths == [
            f"{LICENSES}/sku/1010020020/user/a@example.com",
            f"{LICENSES}/sku/1010020020/user/b@example.com",
        ]

    def test_should_move_license_to_new_sku(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify patch sends the new SKU in the body."""
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main,
            [
                "licenseassignments", "patch", "--skuId", "1010020020", "--skuIdNew", "1010020025",
                "--userId", "a@example.com",
            ],
            obj=runtime,
        )

        assert result.exit_code == 0, result.output
        assert recording_api.json_bodies("PATCH", f"{LICENSES}/sku/1010020020/user/a@example.com") == [
            {"skuId": "1010020025"}
        ]

    def test_should_list_licenses_of_sku(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify listforproductandsku pages through items for the customer."""
        recording_api.route(
            "GET",
            f"{LICENSES}/sku/1010020020/users",
            {"items": [{"userId": "a@example.com"}], "nextPageToken": "p2"},
            {"items": [{"userId": "b@example.com"}]},
        )
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main,
            ["licenseassignments", "listforproductandsku", "--skuId", "1010020020", "--customerId", "example.com"],
            obj=runtime,
        )

        assert result.exit_code == 0, result.output
        assert output_of(runtime) == [{"userId": "a@example.com"}, {"userId": "b@example.com"}]
        assert recording_api.requests[0].url.params["customerId"] == "example.com"

    def test_should_hide_deprecated_settings(
        self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi
    ) -> None:
        """Verify get asks for JSON and drops settings the API no longer applies."""
        recording_api.route(
            "GET",
            "/groups/v1/groups/team@example.com",
            {"email": "team@example.com", "whoCanJoin": "INVITED_CAN_JOIN", "whoCanInvite": "ALL_MANAGERS_CAN_INVITE"},
        )
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(main, ["groupsettings", "get", "--groupUniqueId", "team@example.com"], obj=runtime)

        assert result.exit_code == 0, result.output
        assert recording_api.requests[0].url.params["alt"] == "json"
        assert output_of(runtime) == {"email": "team@example.com", "whoCanJoin": "INVITED_CAN_JOIN"}

    def test_should_patch_settings(self, cli_runner: CliRunner, make_runtime, recording_api: RecordingApi) -> None:
        """Verify only the given settings are sent."""
        runtime = make_runtime(recording_api.handler)

        result = cli_runner.invoke(
            main,
            [
                "groupsettings", "patch", "--groupUniqueId", "team@example.com",
                "--whoCanJoin", "CAN_REQUEST_TO_JOIN", "--allowExternalMembers", "false",
            ],
            obj=runtime,
        )

        assert result.exit_code == 0, result.output
        assert recording_api.json_bodies("PATCH", "/groups/v1/groups/team@example.com") == [
            {"whoCanJoin": "CAN_REQUEST_TO_JOIN", "allowExternalMembers": "false"}
        ]
