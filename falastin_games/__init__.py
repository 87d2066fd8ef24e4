"""Falastin games — orchestration of tool-using LLM game sessions.

The conversation history is the only durable record of game progress:
  scanner     — folds the turn log into round number and used cities
  seeder      — session seed + round number → deterministic city choice
  compactor   — replaces completed rounds with one summary turn
  prompts     — builds the system prompt for the next model call
  reconciler  — applies tool results to GameState (pure transitions)
  session     — GameState holder with write-through persistence
  orchestrator — validates a request and drives the LLM tool loop

Around them: tools (schemas + local execution), llm (chat-completions client),
messages (turns → chat messages), storage (key-value persistence), config.
"""
