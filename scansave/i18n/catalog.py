"""
Built-in translation catalog.

Only the strings the core itself produces or matches against live here:
category labels (search and export), chat greetings and errors, pipeline
failure messages, weekly summary states and export headers.
Keys are dotted paths; values may contain {name} placeholders.
"""

CATALOG: dict[str, dict[str, str]] = {
    "en": {
        "category.food_dining": "Food & Dining",
        "category.groceries": "Groceries",
        "category.shopping": "Shopping",
        "category.transportation": "Transportation",
        "category.health": "Health",
        "category.entertainment": "Entertainment",
        "category.utilities": "Utilities",
        "category.home": "Home",
        "category.other": "Other",
        "chatbot.newChat": "New Chat",
        "chatbot.greetingWithData": (
            "Hi! I'm Savvy, your financial assistant. I've looked through your receipts. "
            "Ask me anything about your spending!"
        ),
        "chatbot.greetingWithoutData": (
            "Hi! I'm Savvy, your financial assistant. Scan a few receipts and I can help "
            "you understand your spending. You can also ask me general money questions."
        ),
        "chatbot.error": "Sorry, I ran into a problem answering that. Please try again.",
        "chatbot.sources": "Sources",
        "chatbot.groundingNotice": "This answer includes results from Google Search.",
        "error.failedAnalysis": (
            "Failed to analyze the receipt. Please try again with a clearer image."
        ),
        "dashboard.weeklySummaryEmpty": "Scan receipts to see your weekly spending summary.",
        "dashboard.weeklySummaryNotEnoughData": (
            "Add at least two receipts from the last 7 days to see your weekly summary."
        ),
        "history.exportCSVHeaders": (
            "Receipt ID,Store Name,Date,Category,Subtotal,Tax,Total,Currency,"
            "Item Description,Item Price"
        ),
    },
    "de": {
        "category.food_dining": "Essen & Trinken",
        "category.groceries": "Lebensmittel",
        "category.shopping": "Einkaufen",
        "category.transportation": "Transport",
        "category.health": "Gesundheit",
        "category.entertainment": "Unterhaltung",
        "category.utilities": "Nebenkosten",
        "category.home": "Haushalt",
        "category.other": "Sonstiges",
        "chatbot.newChat": "Neuer Chat",
        "chatbot.greetingWithData": (
            "Hallo! Ich bin Savvy, dein Finanzassistent. Ich habe mir deine Belege angesehen. "
            "Frag mich alles über deine Ausgaben!"
        ),
        "chatbot.greetingWithoutData": (
            "Hallo! Ich bin Savvy, dein Finanzassistent. Scanne ein paar Belege, dann helfe "
            "ich dir, deine Ausgaben zu verstehen."
        ),
        "chatbot.error": "Entschuldigung, dabei ist ein Fehler aufgetreten. Bitte versuche es erneut.",
        "chatbot.sources": "Quellen",
        "chatbot.groundingNotice": "Diese Antwort enthält Ergebnisse aus der Google-Suche.",
        "error.failedAnalysis": (
            "Der Beleg konnte nicht analysiert werden. Bitte versuche es mit einem "
            "deutlicheren Bild erneut."
        ),
        "dashboard.weeklySummaryEmpty": (
            "Scanne Belege, um deine wöchentliche Ausgabenübersicht zu sehen."
        ),
        "dashboard.weeklySummaryNotEnoughData": (
            "Füge mindestens zwei Belege der letzten 7 Tage hinzu, um deine "
            "Wochenübersicht zu sehen."
        ),
        "history.exportCSVHeaders": (
            "Beleg-ID,Geschäft,Datum,Kategorie,Zwischensumme,Steuer,Gesamt,Währung,"
            "Artikelbeschreibung,Artikelpreis"
        ),
    },
    "es": {
        "category.food_dining": "Comida y restaurantes",
        "category.groceries": "Supermercado",
        "category.shopping": "Compras",
        "category.transportation": "Transporte",
        "category.health": "Salud",
        "category.entertainment": "Entretenimiento",
        "category.utilities": "Servicios",
        "category.home": "Hogar",
        "category.other": "Otros",
        "chatbot.newChat": "Nuevo chat",
        "chatbot.greetingWithData": (
            "¡Hola! Soy Savvy, tu asistente financiero. He revisado tus recibos. "
            "¡Pregúntame lo que quieras sobre tus gastos!"
        ),
        "chatbot.greetingWithoutData": (
            "¡Hola! Soy Savvy, tu asistente financiero. Escanea algunos recibos y te "
            "ayudaré a entender tus gastos."
        ),
        "chatbot.error": "Lo siento, tuve un problema al responder. Inténtalo de nuevo.",
        "chatbot.sources": "Fuentes",
        "chatbot.groundingNotice": "Esta respuesta incluye resultados de la Búsqueda de Google.",
        "error.failedAnalysis": (
            "No se pudo analizar el recibo. Inténtalo de nuevo con una imagen más clara."
        ),
        "dashboard.weeklySummaryEmpty": "Escanea recibos para ver tu resumen semanal de gastos.",
        "dashboard.weeklySummaryNotEnoughData": (
            "Añade al menos dos recibos de los últimos 7 días para ver tu resumen semanal."
        ),
        "history.exportCSVHeaders": (
            "ID de recibo,Tienda,Fecha,Categoría,Subtotal,Impuesto,Total,Moneda,"
            "Descripción del artículo,Precio del artículo"
        ),
    },
    "sr": {
        "category.food_dining": "Hrana i restorani",
        "category.groceries": "Namirnice",
        "category.shopping": "Kupovina",
        "category.transportation": "Prevoz",
        "category.health": "Zdravlje",
        "category.entertainment": "Zabava",
        "category.utilities": "Komunalije",
        "category.home": "Dom",
        "category.other": "Ostalo",
        "chatbot.newChat": "Novi razgovor",
        "chatbot.greetingWithData": (
            "Zdravo! Ja sam Savvy, tvoj finansijski asistent. Pregledao sam tvoje račune. "
            "Pitaj me bilo šta o svojoj potrošnji!"
        ),
        "chatbot.greetingWithoutData": (
            "Zdravo! Ja sam Savvy, tvoj finansijski asistent. Skeniraj nekoliko računa i "
            "pomoći ću ti da razumeš svoju potrošnju."
        ),
        "chatbot.error": "Izvini, došlo je do greške. Pokušaj ponovo.",
        "chatbot.sources": "Izvori",
        "chatbot.groundingNotice": "Ovaj odgovor sadrži rezultate Google pretrage.",
        "error.failedAnalysis": (
            "Analiza računa nije uspela. Pokušaj ponovo sa jasnijom slikom."
        ),
        "dashboard.weeklySummaryEmpty": "Skeniraj račune da vidiš nedeljni pregled potrošnje.",
        "dashboard.weeklySummaryNotEnoughData": (
            "Dodaj bar dva računa iz poslednjih 7 dana da vidiš nedeljni pregled."
        ),
        "history.exportCSVHeaders": (
            "ID računa,Prodavnica,Datum,Kategorija,Međuzbir,Porez,Ukupno,Valuta,"
            "Opis stavke,Cena stavke"
        ),
    },
}
