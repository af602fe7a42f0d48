"""Bundle expansion: turn expandable bundle lines into component lines.

The expander is a pure function of the cart. Loading input, configuring the
metafield keys and printing results all live outside this package's core
function so hosts can call ``expand_cart`` directly.
"""
