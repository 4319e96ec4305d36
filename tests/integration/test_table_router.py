"""Integration tests for table and column endpoints."""

import pytest

EMPLOYEE_LIST = {
    "name": "Employee List",
    "description": "Everyone on payroll",
    "columns": [{"name": "Full Name", "column_type": "TEXT", "required": True}],
}


@pytest.fixture
async def project(client, user_headers):
    resp = await client.post(
        "/workspaces/7/projects", json={"name": "Acme Corp"}, headers=user_headers
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def tables_url(project):
    return f"/workspaces/7/projects/{project['id']}/tables"


async def _create_table(client, tables_url, headers, body=None):
    resp = await client.post(tables_url, json=body or EMPLOYEE_LIST, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestCreateTable:
    async def test_create_employee_list(self, client, tables_url, user_headers, provisioner):
        data = await _create_table(client, tables_url, user_headers)

        assert data["pg_table_identifier"] == "employee_list"
        assert data["description"] == "Everyone on payroll"
        assert [c["pg_column_identifier"] for c in data["columns"]] == ["full_name"]
        assert data["columns"][0]["column_type"] == "TEXT"
        assert data["columns"][0]["required"] is True

        generated = {c["pg_column_identifier"]: c for c in data["generated_columns"]}
        assert list(generated) == ["id", "created_at", "updated_at", "creator"]
        assert generated["id"]["primary"] is True
        assert generated["id"]["pg_type"] == "SERIAL"
        assert generated["id"]["column_type"] == "INTEGER"
        assert generated["created_at"]["column_type"] == "DATETIME"
        assert generated["creator"]["required"] is True

        assert provisioner.call_names()[-2:] == ["create_table", "reload_gateway_schema"]

    async def test_member_forbidden(self, client, tables_url, member_headers, provisioner):
        calls_before = len(provisioner.calls)
        resp = await client.post(tables_url, json=EMPLOYEE_LIST, headers=member_headers)
        assert resp.status_code == 403
        assert len(provisioner.calls) == calls_before

    async def test_outsider_not_found(self, client, tables_url, outsider_headers):
        resp = await client.post(tables_url, json=EMPLOYEE_LIST, headers=outsider_headers)
        assert resp.status_code == 404

    async def test_invalid_column_name(self, client, tables_url, user_headers):
        body = {**EMPLOYEE_LIST, "columns": [{"name": "2nd Name", "column_type": "TEXT"}]}
        resp = await client.post(tables_url, json=body, headers=user_headers)
        assert resp.status_code == 400
        data = resp.json()
        assert data["error"] == "Invalid inputs received."
        assert data["validation_errors"][0]["field"] == "columns.0.name"
        assert data["validation_errors"][0]["messages"]

    async def test_unknown_column_type(self, client, tables_url, user_headers):
        body = {**EMPLOYEE_LIST, "columns": [{"name": "Data", "column_type": "JSONB"}]}
        resp = await client.post(tables_url, json=body, headers=user_headers)
        assert resp.status_code == 400
        assert resp.json()["validation_errors"][0]["field"] == "columns.0.column_type"

    async def test_generated_column_name(self, client, tables_url, user_headers):
        body = {**EMPLOYEE_LIST, "columns": [{"name": "Creator", "column_type": "TEXT"}]}
        resp = await client.post(tables_url, json=body, headers=user_headers)
        assert resp.status_code == 400
        assert resp.json()["validation_errors"] == [
            {
                "field": "columns.0.name",
                "messages": ['"Creator" maps to "creator" which is a generated column'],
            }
        ]

    async def test_duplicate_table(self, client, tables_url, user_headers):
        await _create_table(client, tables_url, user_headers)
        resp = await client.post(
            tables_url, json={**EMPLOYEE_LIST, "name": "employee list"}, headers=user_headers
        )
        assert resp.status_code == 409
        assert resp.json()["code"] == "CONFLICT"


class TestReadTables:
    async def test_list_and_get(self, client, tables_url, user_headers, member_headers):
        created = await _create_table(client, tables_url, user_headers)

        resp = await client.get(tables_url, headers=member_headers)
        assert resp.status_code == 200
        assert [t["id"] for t in resp.json()] == [created["id"]]

        resp = await client.get(f"{tables_url}/{created['id']}", headers=member_headers)
        assert resp.status_code == 200
        assert resp.json()["columns"][0]["name"] == "Full Name"

    async def test_missing_table(self, client, tables_url, user_headers):
        resp = await client.get(f"{tables_url}/999", headers=user_headers)
        assert resp.status_code == 404
        assert resp.json()["error"] == "Table not found"


class TestDeleteTable:
    async def test_delete(self, client, tables_url, user_headers, provisioner):
        created = await _create_table(client, tables_url, user_headers)
        resp = await client.delete(f"{tables_url}/{created['id']}", headers=user_headers)
        assert resp.status_code == 204
        assert provisioner.tables == set()

        resp = await client.get(f"{tables_url}/{created['id']}", headers=user_headers)
        assert resp.status_code == 404

    async def test_member_forbidden(self, client, tables_url, user_headers, member_headers):
        created = await _create_table(client, tables_url, user_headers)
        resp = await client.delete(f"{tables_url}/{created['id']}", headers=member_headers)
        assert resp.status_code == 403


class TestColumns:
    async def test_add_and_drop(self, client, tables_url, user_headers, provisioner, project):
        table = await _create_table(client, tables_url, user_headers)
        columns_url = f"{tables_url}/{table['id']}/columns"

        resp = await client.post(
            columns_url, json={"name": "Salary", "column_type": "FLOAT"}, headers=user_headers
        )
        assert resp.status_code == 201, resp.text
        column = resp.json()
        assert column["pg_column_identifier"] == "salary"
        assert column["required"] is False

        resp = await client.get(f"{tables_url}/{table['id']}", headers=user_headers)
        assert [c["name"] for c in resp.json()["columns"]] == ["Full Name", "Salary"]

        resp = await client.delete(f"{columns_url}/{column['id']}", headers=user_headers)
        assert resp.status_code == 204
        [key] = provisioner.columns
        assert "salary" not in provisioner.columns[key]

        resp = await client.get(f"{tables_url}/{table['id']}", headers=user_headers)
        assert [c["name"] for c in resp.json()["columns"]] == ["Full Name"]

    async def test_add_existing_column(self, client, tables_url, user_headers):
        table = await _create_table(client, tables_url, user_headers)
        resp = await client.post(
            f"{tables_url}/{table['id']}/columns",
            json={"name": "full name", "column_type": "TEXT"},
            headers=user_headers,
        )
        assert resp.status_code == 409

    async def test_drop_missing_column(self, client, tables_url, user_headers):
        table = await _create_table(client, tables_url, user_headers)
        resp = await client.delete(
            f"{tables_url}/{table['id']}/columns/999", headers=user_headers
        )
        assert resp.status_code == 404
        assert resp.json()["error"] == "Column not found"
