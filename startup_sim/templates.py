"""Product templates, component breakdowns and feature staffing requirements."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from .models import FeatureRequirements


@dataclass(frozen=True)
class ComponentTemplate:
    id: str
    name: str
    base_complexity: float
    estimated_days: float


@dataclass(frozen=True)
class FeatureTemplate:
    id: str
    name: str
    description: str
    base_complexity: float
    priority: int
    unlocks_capability: Optional[str] = None
    components: Tuple[ComponentTemplate, ...] = ()


@dataclass(frozen=True)
class ProductTemplate:
    id: str
    name: str
    description: str
    category: str
    estimated_complexity: float  # 1-5
    revenue_potential: float  # 1.0-2.0
    features: Tuple[FeatureTemplate, ...] = field(default_factory=tuple)


def _features(rows: List[Tuple]) -> Tuple[FeatureTemplate, ...]:
    out = []
    for priority, row in enumerate(rows, start=1):
        feature_id, name, description, complexity = row[:4]
        capability = row[4] if len(row) > 4 else None
        out.append(FeatureTemplate(feature_id, name, description, complexity, priority, capability))
    return tuple(out)


PRODUCT_TEMPLATES: Tuple[ProductTemplate, ...] = (
    ProductTemplate(
        id="crm-platform",
        name="CRM Platform",
        description="Customer relationship management with AI-powered insights and sales automation",
        category="CRM",
        estimated_complexity=4,
        revenue_potential=1.4,
        features=_features([
            ("auth", "User Authentication & Profiles", "Secure login, user profiles, and role-based access control", 3),
            ("contacts", "Contact Management", "Centralized database for managing customer contacts and interactions", 4),
            ("pipeline", "Sales Pipeline Tracking", "Visual sales funnel with deal stages and forecasting", 5),
            ("email", "Email Integration", "Sync emails with contacts and track communication history", 5),
            ("ai-scoring", "AI-Powered Lead Scoring", "Machine learning model to automatically score and prioritize leads", 7, "analytics"),
            ("reporting", "Reporting Dashboard", "Analytics and insights on sales performance and customer data", 4, "analytics"),
            ("api", "API Integration", "RESTful API for third-party integrations and custom workflows", 6),
            ("mobile", "Mobile App", "Native mobile apps for iOS and Android", 8, "mobile"),
        ]),
    ),
    ProductTemplate(
        id="project-management",
        name="Project Management Tool",
        description="Team collaboration platform with task management, automation, and real-time updates",
        category="Productivity",
        estimated_complexity=3,
        revenue_potential=1.2,
        features=_features([
            ("auth", "User Authentication & Teams", "Team member accounts and organization management", 3),
            ("tasks", "Task Management", "Create, assign, and track tasks with due dates and priorities", 4),
            ("boards", "Kanban Boards", "Visual project boards with drag-and-drop task organization", 4),
            ("collaboration", "Real-time Collaboration", "Live updates, comments, and notifications for team coordination", 5),
            ("automation", "Workflow Automation", "Automate repetitive tasks with custom rules and triggers", 6, "automation"),
            ("time-tracking", "Time Tracking & Reports", "Track time spent on tasks and generate productivity reports", 4, "analytics"),
            ("integrations", "Third-party Integrations", "Connect with Slack, GitHub, Jira, and other tools", 5),
            ("mobile", "Mobile Apps", "iOS and Android apps for on-the-go project management", 7, "mobile"),
        ]),
    ),
    ProductTemplate(
        id="analytics-dashboard",
        name="Data Analytics Dashboard",
        description="Business intelligence platform with real-time reporting, data visualization, and predictive analytics",
        category="Analytics",
        estimated_complexity=5,
        revenue_potential=1.6,
        features=_features([
            ("auth", "Enterprise Authentication", "SSO, multi-factor authentication, and advanced security", 4),
            ("data-connectors", "Data Source Connectors", "Connect to databases, APIs, and cloud services for data ingestion", 6),
            ("visualization", "Data Visualization", "Interactive charts, graphs, and custom dashboard builder", 5),
            ("real-time", "Real-time Reporting", "Live data updates and streaming analytics", 6, "analytics"),
            ("predictive", "Predictive Analytics", "AI-powered forecasting and trend analysis", 8, "analytics"),
            ("alerts", "Custom Alerts & Notifications", "Set up automated alerts for data anomalies and thresholds", 4),
            ("export", "Export & Sharing", "Export reports, schedule emails, and share dashboards", 3),
            ("api", "Analytics API", "Programmatic access to analytics data and custom integrations", 7),
        ]),
    ),
    ProductTemplate(
        id="ai-chatbot",
        name="AI Chatbot Platform",
        description="Intelligent customer service automation with natural language processing and machine learning",
        category="AI",
        estimated_complexity=5,
        revenue_potential=1.5,
        features=_features([
            ("chat-interface", "Chat Interface", "Web and widget-based chat interface for customer conversations", 3),
            ("nlp", "Natural Language Processing", "Understand and respond to customer queries in natural language", 7),
            ("knowledge-base", "Knowledge Base Integration", "Connect to documentation and FAQ databases for accurate responses", 5),
            ("multi-channel", "Multi-channel Support", "Deploy chatbots across website, mobile app, and messaging platforms", 5),
            ("analytics", "Conversation Analytics", "Track metrics, sentiment analysis, and performance insights", 4, "analytics"),
            ("training", "Custom AI Training", "Train AI models on your specific data and use cases", 8),
            ("sso", "Enterprise SSO", "Single sign-on integration for enterprise customers", 5),
            ("api", "API & Integrations", "REST API for custom integrations and CRM connections", 6),
        ]),
    ),
    ProductTemplate(
        id="hr-management",
        name="HR Management System",
        description="Comprehensive employee lifecycle management with payroll, benefits, and performance tracking",
        category="HR",
        estimated_complexity=4,
        revenue_potential=1.3,
        features=_features([
            ("employee-db", "Employee Database", "Centralized employee profiles with documents and information management", 3),
            ("onboarding", "Onboarding Workflows", "Automated onboarding processes and document collection", 4),
            ("time-off", "Time & Attendance", "Time tracking, PTO management, and attendance monitoring", 4),
            ("performance", "Performance Reviews", "360-degree reviews, goal tracking, and feedback management", 5, "analytics"),
            ("payroll", "Payroll Integration", "Calculate salaries, taxes, and integrate with payroll providers", 6, "revenue"),
            ("benefits", "Benefits Administration", "Manage health insurance, retirement plans, and employee benefits", 5),
            ("reporting", "HR Analytics Dashboard", "Insights on workforce trends, turnover, and productivity metrics", 4, "analytics"),
            ("mobile", "Employee Mobile App", "Mobile app for employees to access HR information and services", 6, "mobile"),
        ]),
    ),
)

# (name, complexity, estimated days) per known feature id
COMPONENT_DEFINITIONS: Dict[str, List[Tuple[str, float, float]]] = {
    "auth": [
        ("User Registration", 2, 3), ("Login & Session Management", 3, 4), ("Password Reset Flow", 2, 3),
        ("Role-Based Access Control", 4, 5), ("User Profile Management", 2, 3),
    ],
    "contacts": [
        ("Contact Database Schema", 3, 4), ("CRUD Operations", 3, 4), ("Contact Search & Filtering", 4, 5),
        ("Contact Import/Export", 4, 5), ("Contact History Tracking", 3, 4),
    ],
    "pipeline": [
        ("Deal Stage Management", 3, 4), ("Visual Pipeline Board", 5, 6), ("Deal Value Tracking", 2, 3),
        ("Sales Forecasting", 6, 7), ("Pipeline Analytics", 4, 5),
    ],
    "email": [
        ("Email API Integration", 5, 6), ("Email Sync Service", 6, 7), ("Thread Management", 4, 5),
        ("Email Templates", 3, 4), ("Email Tracking", 4, 5),
    ],
    "ai-scoring": [
        ("Data Collection Pipeline", 5, 6), ("Feature Engineering", 6, 7), ("ML Model Training", 7, 8),
        ("Scoring API", 5, 6), ("Model Monitoring & Retraining", 6, 7),
    ],
    "reporting": [
        ("Data Aggregation Layer", 4, 5), ("Dashboard Framework", 5, 6), ("Chart Components", 4, 5),
        ("Custom Report Builder", 6, 7), ("Report Export", 3, 4),
    ],
    "api": [
        ("REST API Design", 4, 5), ("Authentication & Authorization", 5, 6), ("API Endpoints", 5, 6),
        ("Rate Limiting", 4, 5), ("API Documentation", 3, 4),
    ],
    "mobile": [
        ("Mobile App Architecture", 5, 6), ("Core UI Components", 4, 5), ("API Integration", 4, 5),
        ("Offline Support", 6, 7), ("Push Notifications", 5, 6),
    ],
    "tasks": [
        ("Task Management System", 4, 5), ("Task Dependencies", 5, 6), ("Task Filtering & Sorting", 3, 4),
        ("Bulk Task Operations", 4, 5),
    ],
    "collaboration": [
        ("Real-time Collaboration Engine", 7, 8), ("Comments System", 4, 5), ("Mentions & Notifications", 5, 6),
        ("Activity Feed", 4, 5),
    ],
    "chat-interface": [
        ("Chat UI Components", 4, 5), ("Real-time Messaging", 5, 6), ("Message History", 3, 4),
        ("File Attachments", 4, 5),
    ],
    "nlp": [
        ("Intent Recognition", 7, 8), ("Entity Extraction", 6, 7), ("Context Management", 6, 7),
        ("Multi-language Support", 5, 6),
    ],
    "employee-db": [
        ("Employee Database Schema", 4, 5), ("Employee Profiles", 3, 4), ("Directory & Search", 3, 4),
        ("Org Chart", 5, 6),
    ],
    "time-tracking": [
        ("Time Entry System", 4, 5), ("Timesheet Management", 4, 5), ("Approval Workflow", 5, 6),
        ("Time Reports", 4, 5),
    ],
    "performance": [
        ("Goal Setting System", 4, 5), ("Review Templates", 3, 4), ("360 Feedback", 5, 6),
        ("Performance Analytics", 5, 6),
    ],
}


def get_product_template(template_id: str) -> Optional[ProductTemplate]:
    return next((t for t in PRODUCT_TEMPLATES if t.id == template_id), None)


def list_product_templates() -> List[ProductTemplate]:
    return list(PRODUCT_TEMPLATES)


def generate_components_for_feature(feature_id: str, feature_name: str, base_complexity: float) -> List[ComponentTemplate]:
    """Break a feature into work items, predefined where a breakdown is known."""
    known = COMPONENT_DEFINITIONS.get(feature_id)
    if known:
        return [
            ComponentTemplate(f"{feature_id}-{i}", name, complexity, days)
            for i, (name, complexity, days) in enumerate(known, start=1)
        ]

    n_components = int(np.clip(math.ceil(base_complexity / 1.5), 3, 6))
    components = []
    for i in range(n_components):
        complexity = float(np.clip(base_complexity + (i - n_components / 2) * 0.5, 2, 8))
        components.append(
            ComponentTemplate(
                id=f"{feature_id}-comp-{i + 1}",
                name=f"{feature_name} - Component {i + 1}",
                base_complexity=round(complexity, 1),
                estimated_days=float(math.ceil(complexity * 1.2)),
            )
        )
    return components


def generate_feature_requirements(base_complexity: float, rng: np.random.Generator) -> FeatureRequirements:
    """Staffing profile for a feature, scaled by its complexity.

    Low (1-3): junior/mid, up to one engineer per subclass, maybe a product
    designer. Medium (4-6): mid/senior, up to one of each subclass. High
    (7-10): senior, ceil(c/4) frontend and backend engineers plus designers.
    """
    if base_complexity <= 3:
        reqs = FeatureRequirements(
            min_seniority="junior" if rng.random() > 0.5 else "mid",
            frontend=int(rng.random() > 0.5),
            backend=int(rng.random() > 0.5),
            product_designers=int(rng.random() > 0.7),
            visual_designers=0,
        )
    elif base_complexity <= 6:
        reqs = FeatureRequirements(
            min_seniority="mid" if rng.random() > 0.3 else "senior",
            frontend=int(rng.random() > 0.3),
            backend=int(rng.random() > 0.3),
            product_designers=int(rng.random() > 0.4),
            visual_designers=int(rng.random() > 0.6),
        )
    else:
        engineers = int(math.ceil(base_complexity / 4))
        reqs = FeatureRequirements(
            min_seniority="senior",
            frontend=engineers,
            backend=engineers,
            product_designers=int(rng.random() > 0.3),
            visual_designers=int(rng.random() > 0.3),
        )
    # A feature nobody can be assigned to would never progress.
    if reqs.engineer_slots() == 0:
        if rng.random() < 0.5:
            reqs.frontend = 1
        else:
            reqs.backend = 1
    return reqs
