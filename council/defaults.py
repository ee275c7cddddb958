"""
Built-in datasets served when a backend has never been written to.
"""

from __future__ import annotations

SEED_TIMESTAMP = "2023-01-01T00:00:00.000000+00:00"

DEFAULT_TEAM = {
    "chandrabhan-patel": {
        "id": "chandrabhan-patel",
        "name": "Chandrabhan Patel",
        "position": "Technical Secretary",
        "email": "technical.secretary@iitgn.ac.in",
        "initials": "CP",
        "gradientFrom": "from-blue-600",
        "gradientTo": "to-purple-600",
        "category": "leadership",
        "photoPath": "/team/Chandrabhan-Patel.png",
        "isSecretary": True,
        "isCoordinator": False,
        "createdAt": SEED_TIMESTAMP,
        "updatedAt": SEED_TIMESTAMP,
    },
    "anmol-kumar": {
        "id": "anmol-kumar",
        "name": "Anmol Kumar",
        "position": "Technical Coordinator",
        "email": "kumaranmol@iitgn.ac.in",
        "initials": "AK",
        "gradientFrom": "from-purple-600",
        "gradientTo": "to-pink-600",
        "category": "coordinator",
        "photoPath": "/team/Anmol-Kumar.jpg",
        "isSecretary": False,
        "isCoordinator": True,
        "createdAt": SEED_TIMESTAMP,
        "updatedAt": SEED_TIMESTAMP,
    },
}

DEFAULT_CLUBS = {
    "metis": {
        "id": "metis",
        "name": "Metis, Development Club",
        "description": (
            "Focuses on software development and coding, where members work on "
            "real-world projects and contribute to open source."
        ),
        "longDescription": (
            "Metis, the Development Club, fosters software development skills "
            "through real-world projects, open-source contributions and modern "
            "programming practice."
        ),
        "type": "club",
        "category": "Software Development",
        "members": "60+",
        "established": "2018",
        "email": "metis@iitgn.ac.in",
        "achievements": ["Contributed to 50+ open-source projects"],
        "projects": ["Campus Event Management System"],
        "team": [
            {"name": "Aryan Sharma", "role": "Club President", "email": "aryan@iitgn.ac.in"}
        ],
        "logoPath": None,
        "createdAt": SEED_TIMESTAMP,
        "updatedAt": SEED_TIMESTAMP,
    },
}

DEFAULT_EVENTS = {
    "tech-expo-2024": {
        "id": "tech-expo-2024",
        "title": "Tech Expo 2024",
        "description": "Annual showcase of student projects from every club.",
        "date": "2024-03-15",
        "location": "IITGN Campus",
        "duration": "1 day",
        "participants": "200+",
        "organizer": "Technical Council",
        "category": "exhibition",
        "highlights": ["40+ projects on display"],
        "gallery": [],
        "draft": False,
        "createdAt": SEED_TIMESTAMP,
        "updatedAt": SEED_TIMESTAMP,
    },
}

DEFAULT_HACKATHONS: dict = {}

DEFAULT_ACHIEVEMENTS: dict = {}

DEFAULT_MAGAZINES = {
    "torque-2023": {
        "id": "torque-2023",
        "year": "2023",
        "title": "Innovation Unleashed",
        "description": "Exploring the frontiers of AI, robotics, and sustainable technology",
        "pages": 120,
        "articles": 25,
        "featured": "AI in Healthcare",
        "filePath": "/torque/magazines/torque-2023.pdf",
        "fileName": "torque-2023.pdf",
        "fileSize": 15728640,
        "coverPhoto": "/torque/covers/torque-2023-cover.jpg",
        "coverPhotoFileName": "torque-2023-cover.jpg",
        "isLatest": True,
        "createdAt": SEED_TIMESTAMP,
        "updatedAt": SEED_TIMESTAMP,
    },
}

DEFAULT_SETTINGS = {
    "site": {
        "id": "site",
        "hackathonsVisible": True,
        "adminEmails": [],
        "lastModified": SEED_TIMESTAMP,
        "modifiedBy": "system",
        "createdAt": SEED_TIMESTAMP,
        "updatedAt": SEED_TIMESTAMP,
    },
}

DEFAULT_CONTACT_INFO = {
    "contact": {
        "id": "contact",
        "address": {
            "street": "323, Acad Block 4, IIT Gandhinagar",
            "city": "Palaj, Gandhinagar",
            "state": "Gujarat",
            "postalCode": "382355",
            "country": "India",
        },
        "phone": "+91-79-2395-2001",
        "email": "technical.secretary@iitgn.ac.in",
        "socialMedia": {
            "instagram": "https://www.instagram.com/tech_iitgn",
            "youtube": "https://www.youtube.com/@tech_iitgn",
            "linkedin": "https://www.linkedin.com/school/tech-council-iitgn/",
            "facebook": "https://www.facebook.com/tech.iitgn",
        },
        "lastModified": SEED_TIMESTAMP,
        "modifiedBy": "system",
        "createdAt": SEED_TIMESTAMP,
        "updatedAt": SEED_TIMESTAMP,
    },
}
