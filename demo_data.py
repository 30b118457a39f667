"""
Demo data for the Issue Tracker
One company (ACME) with a manager, two developers and two QA testers
working on two projects
"""

DEMO_COMPANY = "ACME"

DEMO_PASSWORD = "password123"

# Structure: name, email, role
DEMO_USERS = [
    {"name": "Priya Shah", "email": "priya.shah@acme.com", "role": "ProjectManager"},
    {"name": "Sam Carter", "email": "sam.carter@acme.com", "role": "Developer"},
    {"name": "Lena Ortiz", "email": "lena.ortiz@acme.com", "role": "Developer"},
    {"name": "Riya Menon", "email": "riya.menon@acme.com", "role": "QATester"},
    {"name": "Tom Becker", "email": "tom.becker@acme.com", "role": "QATester"},
]

# manager and members reference DEMO_USERS by email
DEMO_PROJECTS = [
    {
        "name": "Website Redesign",
        "description": "New marketing site and customer login",
        "manager": "priya.shah@acme.com",
        "members": ["sam.carter@acme.com", "riya.menon@acme.com", "lena.ortiz@acme.com"],
    },
    {
        "name": "Mobile Checkout",
        "key": "MC",
        "description": "Checkout flow for the iOS and Android apps",
        "manager": "priya.shah@acme.com",
        "members": ["lena.ortiz@acme.com", "tom.becker@acme.com"],
    },
]

# "flow" is the list of workflow steps replayed after creation:
# start, fix, pass:<comment>, reopen:<comment>
DEMO_TASKS = [
    {
        "project": "Website Redesign",
        "title": "Fix login bug",
        "description": "User is redirected to the dashboard after login",
        "steps": "Open /login\nEnter valid credentials\nPress Sign in",
        "priority": "High",
        "browser": "Safari 17",
        "os": "macOS 14",
        "developer": "sam.carter@acme.com",
        "qa": "riya.menon@acme.com",
        "flow": ["fix", "reopen:still fails on Safari", "start"],
    },
    {
        "project": "Website Redesign",
        "title": "Footer links point to staging",
        "description": "All footer links open the production site",
        "priority": "Low",
        "developer": "lena.ortiz@acme.com",
        "qa": "riya.menon@acme.com",
        "flow": ["start", "fix", "pass:Verified on Chrome and Firefox"],
    },
    {
        "project": "Website Redesign",
        "title": "Hero image is blurry on retina screens",
        "description": "Hero image renders sharp at 2x density",
        "priority": "Medium",
        "developer": "sam.carter@acme.com",
        "qa": "riya.menon@acme.com",
        "flow": ["start", "fix"],
    },
    {
        "project": "Mobile Checkout",
        "title": "Card form accepts expired dates",
        "description": "Expired cards are rejected before submit",
        "steps": "Add item to cart\nGo to checkout\nEnter card with expiry 01/2020",
        "priority": "Critical",
        "browser": "App 3.2.0",
        "os": "Android 14",
        "developer": "lena.ortiz@acme.com",
        "qa": "tom.becker@acme.com",
        "flow": [],
    },
]

# Tasks carried over from the previous tracker: explicit keys and the
# comment log only in the description text
DEMO_IMPORTED_TASKS = [
    {
        "project": "Mobile Checkout",
        "task_key": "MC-7",
        "title": "Apple Pay sheet shows wrong total",
        "description": (
            "Total in the Apple Pay sheet matches the cart total"
            "\nQA Reopen Reason (3/14/2025, 4:05:09 pm): tax missing from total"
            "\nQA Pass Comments (3/18/2025, 10:30:00 am): fixed in build 412"
        ),
        "priority": "High",
        "status": "done",
        "developer": "lena.ortiz@acme.com",
        "qa": "tom.becker@acme.com",
    },
]
