# Raw session messages -> normalized events
#
#  session message          decoded shapes            events
# +-----------------+     +----------------+     +-----------------+
# | assistant       | --> | ContentShape   | --> | text..., tool...|
# |   content[]     |     |                |     |                 |
# |   usage         | --> | UsageShape     | --> | usage           |
# | result          | --> | ResultShape    | --> | result          |
# | anything else   | --> | (nothing)      |     |                 |
# +-----------------+     +----------------+     +-----------------+
#
# The orchestrator appends a single `done` once the session is exhausted.
