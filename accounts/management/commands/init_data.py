import json
import os
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from accounts.models import User
from scheduler.data.models import Card, WordList


class Command(BaseCommand):
    help = "Reset users and seed demo cards from a JSON file"

    def add_arguments(self, parser):
        parser.add_argument(
            "--file", default="MOCK_DATA.json", help="JSON file name to load data from"
        )

    def handle(self, *args, **options):
        file_name = options.get("file", "MOCK_DATA.json")
        json_file_path = os.path.join(os.path.dirname(__file__), file_name)

        try:
            with open(json_file_path) as json_file:
                words = json.load(json_file)
        except (OSError, json.JSONDecodeError) as e:
            raise CommandError(f"Error loading data: {e}") from e

        with transaction.atomic():
            # cards, lists and schedules cascade with their owner
            User.objects.all().delete()
            self.stdout.write(self.style.SUCCESS("All existing user data has been deleted"))

            User.objects.create_superuser(
                "testuser", email="testuser@example.com", password="testpassword"
            )
            users = [
                User.objects.create_user(
                    f"testuser{i}",
                    email=f"testuser{i}@example.com",
                    password="testpassword",
                )
                for i in range(1, 6)
            ]

            for user in users:
                lists = {}
                for entry in words:
                    list_name = entry.get("list")
                    word_list = None
                    if list_name:
                        if list_name not in lists:
                            lists[list_name] = WordList.objects.create(user=user, name=list_name)
                        word_list = lists[list_name]
                    Card.objects.create(
                        user=user,
                        word_list=word_list,
                        word=entry["word"],
                        definition=entry.get("definition", ""),
                    )

        self.stdout.write(
            self.style.SUCCESS(f"Mock data loaded successfully from {file_name}")
        )
