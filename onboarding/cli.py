# Terminal front end for the onboarding conversation.
# Talks to a running onboarding server through VoiceflowApiClient.

import argparse
import asyncio
import json
from typing import Optional

from .client import VoiceflowApiClient
from .config import settings
from .logging_config import configure_logging
from .services.conversation import ConversationManager
from .services.planner import TripPlanner
from .services.profile_merge import format_profile_for_display
from .services.profile_store import ProfileStore
from .services.speech import FileAudioSink, TtsPlayer

HELP = "Commands: /step N, /progress, /profile, /plan N TEXT, /save [PATH], /reset, /exit"


def _print_new(manager: ConversationManager, seen: int) -> int:
    for msg in manager.messages[seen:]:
        if msg.role == "assistant":
            label = "Assistant" if msg.type != "confirmation" else "Assistant (confirm)"
            print(f"\n{label}: {msg.content}")
    return len(manager.messages)


def _print_profile(manager: ConversationManager):
    print(json.dumps(manager.store.to_dict(), indent=2))
    extracted = format_profile_for_display(manager.store.extracted)
    if extracted:
        print("\nFrom this conversation:")
        print(json.dumps(extracted, indent=2))


async def _plan(planner: TripPlanner, manager: ConversationManager, arg: str):
    number, _, text = arg.strip().partition(" ")
    trips = manager.profile.upcoming_trips or []
    if not number.isdigit() or not 1 <= int(number) <= len(trips):
        print(f"Usage: /plan N TEXT, with N between 1 and {len(trips)}" if trips else "No upcoming trips yet")
        return
    reply = await planner.send(manager.store, int(number) - 1, text)
    if reply:
        print(f"\nPlanner ({trips[int(number) - 1].destination}): {reply.content}")


async def run(base_url: str, profile_path: Optional[str], audio_dir: Optional[str]) -> None:
    store = ProfileStore.load(profile_path) if profile_path else ProfileStore()
    player = TtsPlayer(FileAudioSink(audio_dir)) if audio_dir else None

    async with VoiceflowApiClient(base_url) as client:
        manager = ConversationManager(client, store=store, player=player)
        planner = TripPlanner()

        print("Travel Profile Onboarding")
        print(HELP)
        print("-" * 50)

        await manager.start()
        seen = _print_new(manager, 0)

        while not manager.state.is_complete:
            try:
                user_message = (await asyncio.to_thread(input, "\nYou: ")).strip()
            except (EOFError, KeyboardInterrupt):
                print("\nBye!")
                break

            if not user_message:
                continue

            cmd, _, arg = user_message.partition(" ")
            cmd = cmd.lower()

            if cmd in {"/exit", "/quit"}:
                print("Bye!")
                break
            if cmd == "/help":
                print(HELP)
                continue
            if cmd == "/profile":
                _print_profile(manager)
                continue
            if cmd == "/progress":
                for item in manager.steps.progress():
                    print(f"  {item['step']}. {item['label']:<15} {item['status']}")
                continue
            if cmd == "/plan":
                await _plan(planner, manager, arg)
                continue
            if cmd == "/save":
                path = arg.strip() or profile_path or "profile.json"
                manager.store.save(path)
                print(f"Saved to {path}")
                continue
            if cmd == "/reset":
                await manager.restart_session()
                seen = _print_new(manager, 0)
                continue
            if cmd == "/step":
                try:
                    manager.set_step(int(arg) - 1)
                except ValueError:
                    print(f"Step must be between 1 and {len(manager.steps.topics)}")
                    continue
            else:
                await manager.send_message(user_message)

            seen = _print_new(manager, seen)

        if manager.state.is_complete:
            print("\nOnboarding complete. Your profile:")
            _print_profile(manager)
        if profile_path:
            manager.store.save(profile_path)
        if player:
            await player.wait()


def main() -> None:
    parser = argparse.ArgumentParser(description="Build a travel profile by chatting.")
    parser.add_argument("--base-url", default=settings.api_base_url, help="Onboarding server URL")
    parser.add_argument("--profile", help="JSON file to load the profile from and save it to")
    parser.add_argument("--audio-dir", help="Write speech clips to this directory")
    args = parser.parse_args()

    configure_logging("WARNING")
    asyncio.run(run(args.base_url, args.profile, args.audio_dir))


if __name__ == "__main__":
    main()
