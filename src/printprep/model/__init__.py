"""
The MODEL layer contains pure data structures and layout logic.
It has NO knowledge of Qt. It deals with sizes, aspects, crops and work orders.
"""
