from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from apps.gigs.models import Task

ORIENTATION_TASKS = [
    ("Welcome to ProMo-G", "Learn about our platform and how to earn money with every interaction",
     "main", "https://promo-g.com/welcome", "5.00", 180),
    ("Platform Navigation", "Explore the dashboard and understand the main features",
     "main", "https://promo-g.com/navigation", "5.00", 150),
    ("Social Media Engagement Basics", "Learn how to effectively engage with social media content",
     "social", "https://facebook.com/promog", "7.50", 200),
    ("Content Sharing Guidelines", "Understand best practices for sharing and promoting content",
     "social", "https://twitter.com/promog", "7.50", 180),
    ("Market Research Introduction", "Learn how to participate in surveys and polls effectively",
     "surveys", "https://surveys.promog.com/intro", "6.00", 240),
    ("Survey Best Practices", "Tips for providing quality responses in market research",
     "surveys", "https://surveys.promog.com/best-practices", "6.00", 200),
    ("App Testing Fundamentals", "Introduction to mobile app testing and bug reporting",
     "testing", "https://testing.promog.com/mobile-intro", "8.00", 300),
    ("Website Testing Guide", "Learn how to test websites and report usability issues",
     "testing", "https://testing.promog.com/web-intro", "8.00", 280),
    ("AI Training Basics", "Introduction to helping train AI models through data labeling",
     "ai", "https://ai.promog.com/training-intro", "10.00", 360),
    ("Data Quality Guidelines", "Learn how to provide high-quality training data for AI systems",
     "ai", "https://ai.promog.com/quality-guidelines", "10.00", 320),
]

CATALOG_TASKS = [
    ("Social Media Post Engagement", "Like, share, and comment on sponsored social media posts",
     "social", "https://facebook.com/sponsored-post-1", "12.50", "silver", 300),
    ("Mobile App Beta Testing", "Test new mobile app features and report bugs",
     "testing", "https://testflight.apple.com/beta-app-1", "25.00", "bronze", 600),
    ("AI Image Labeling", "Help train AI models by labeling images accurately",
     "ai", "https://ai.promog.com/image-labeling", "30.00", "diamond", 900),
    ("Consumer Survey Participation", "Complete detailed market research surveys",
     "surveys", "https://surveys.promog.com/consumer-research", "15.00", "silver", 450),
]


class Command(BaseCommand):
    help = "Seeds the orientation tasks (two per category) and the starter task catalog"

    def handle(self, *args, **options):
        created = 0

        with transaction.atomic():
            for title, description, category, url, reward, min_duration in ORIENTATION_TASKS:
                _, was_created = Task.objects.get_or_create(
                    title=title,
                    is_orientation=True,
                    defaults={
                        "description": description,
                        "category": category,
                        "url": url,
                        "reward": Decimal(reward),
                        "min_tier": "member",
                        "min_duration": min_duration,
                    },
                )
                created += was_created

            for title, description, category, url, reward, min_tier, min_duration in CATALOG_TASKS:
                _, was_created = Task.objects.get_or_create(
                    title=title,
                    is_orientation=False,
                    defaults={
                        "description": description,
                        "category": category,
                        "url": url,
                        "reward": Decimal(reward),
                        "min_tier": min_tier,
                        "min_duration": min_duration,
                    },
                )
                created += was_created

        self.stdout.write(self.style.SUCCESS(f"✔ {created} tasks seeded"))
