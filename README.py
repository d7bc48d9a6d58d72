"""
Xray Draft Studio API

FastAPI backend for drafting Xray test cases locally and importing them into
Xray Cloud.

Architecture Overview:
- Drafts are plain JSON files, one per test case, grouped by project and area
- Repository pattern for storage and for the Xray Cloud client
- Dependency Injection through a small container
- Structured logging with structlog

Storage layout (relative to DATA_ROOT):
- config/xray-config.json          Xray credentials and Jira base URL
- config/settings.json             Projects, hidden projects, per-project settings
- testCases/<PROJECT>/<Area>/<slug>-<id8>.json

A draft summary of the form "Area | Layer | Title" decides where its file
lives. Changing the summary or project key moves the file and prunes any
directories left empty.

Usage:
1. Optionally create a .env file (DATA_ROOT, API_PORT, XRAY_BASE_URL, ...)
2. Install: pip install -e .[test]
3. Run the application: python main.py
4. Access API docs at: http://localhost:3001/api/docs

API Endpoints:
- GET    /api/health                        Health check
- GET    /api/config                        Configuration status
- POST   /api/config                        Validate and save credentials
- POST   /api/config/test-connection        Check credentials (rate limited)
- GET    /api/drafts                        List drafts (?project=KEY)
- POST   /api/drafts                        Create draft
- PUT    /api/drafts/{id}                   Update draft
- DELETE /api/drafts/{id}                   Delete draft
- GET    /api/settings                      Settings synced with disk
- POST   /api/settings/projects             Add project
- POST   /api/xray/import                   Import drafts into Xray
- GET    /api/xray/test-plans/{projectKey}  List test plans (also executions, sets, preconditions)
"""
