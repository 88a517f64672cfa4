"""
Villain Response Model - per-hero-action opponent response estimates.

For every hero betting action in a stored hand, the response pipeline
estimates how the opponent folds, calls or raises, which combos land in
each bucket, how large the raises are, and how far the estimate sits from
an MDF-based reference.

Main components:
- models: Core data structures (Hand, BettingAction, HeroAction, etc.)
- parser: Turn stored JSON hand documents into Hand objects
- response: Pipeline stages, hand store, orchestrator and web API

Usage:
    from response import ResponseOrchestrator
    from response.storage import HandStore

    orchestrator = ResponseOrchestrator(store=HandStore("data/hands.db"))
    result = orchestrator.run(username="charlie")
    print(result.done_line())
"""

from models import (
    ActionVerb, Street,
    Seat, BettingAction, HeroAction, Hand,
    parse_verb
)

from parser import HandParser, load_hands, parse_hand

from response import (
    BatchResult, HandOutcome, Range,
    ResponseOrchestrator, ResponsePipeline, ResponseService,
    build_response_model
)


__version__ = "1.0.0"

__all__ = [
    # Models
    'ActionVerb',
    'Street',
    'Seat',
    'BettingAction',
    'HeroAction',
    'Hand',
    'parse_verb',

    # Parser
    'HandParser',
    'load_hands',
    'parse_hand',

    # Response pipeline
    'BatchResult',
    'HandOutcome',
    'Range',
    'ResponseOrchestrator',
    'ResponsePipeline',
    'ResponseService',
    'build_response_model',
]
